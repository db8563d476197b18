import json

import pytest

from app.core.errors import CompileError
from app.query.formatting import format_multi_query, split_segments
from app.query.lookups import LookupBuilder
from app.query.params import Date, ReleaseSort, ReleaseType, SearchSort
from app.query.releases import ReleaseBuilder, ReleaseSearchRequest
from app.query.search import SUB_QUERIES, SearchBuilder, SearchRequest


@pytest.fixture(scope="module")
def search_builder():
    return SearchBuilder()


@pytest.fixture(scope="module")
def release_builder():
    return ReleaseBuilder()


def _pairs(body):
    lines = body.split("\n")
    assert lines[-1] == "" and body.endswith("\n")
    lines = lines[:-1]
    assert len(lines) % 2 == 0
    return [(json.loads(lines[i]), json.loads(lines[i + 1])) for i in range(0, len(lines), 2)]


# ----------------------- content search -----------------------


def test_default_request_renders_content_and_counts(search_builder):
    pairs = _pairs(search_builder.build(SearchRequest()))
    assert len(pairs) == 2

    header, content = pairs[0]
    assert header["index"] == "ons"
    assert header["search_type"] == "dfs_query_then_fetch"
    assert "bulletin" in header["type"]
    assert content["from"] == 0 and content["size"] == 10
    assert content["query"]["bool"]["must"] == {"match_all": {}}
    assert content["sort"] == [{"_score": {"order": "desc"}}, {"release_date": {"order": "desc"}}]
    assert "suggest" not in content

    _, counts = pairs[1]
    assert counts["size"] == 0
    assert counts["aggregations"]["docCounts"]["terms"]["field"] == "type"


@pytest.mark.parametrize("n", range(1, len(SUB_QUERIES) + 1))
def test_one_pair_per_sub_query(search_builder, n):
    req = SearchRequest(queries=list(SUB_QUERIES[:n]))
    assert len(_pairs(search_builder.build(req))) == n


def test_sub_queries_come_out_in_fixed_order(search_builder):
    req = SearchRequest(queries=["dimensions", "departments", "content"], highlight=False)
    pairs = _pairs(search_builder.build(req))
    assert pairs[0][1]["from"] == 0
    assert pairs[1][0]["index"] == "departments"
    assert "dimensions" in pairs[2][1]["aggregations"]


def test_term_adds_query_and_suggest(search_builder):
    req = SearchRequest(term='cpi "retail prices"', sort=SearchSort.TITLE)
    _, content = _pairs(search_builder.build(req))[0]
    assert "function_score" in content["query"]["bool"]["must"]
    assert content["suggest"]["search_suggest"]["text"] == 'cpi "retail prices"'
    assert content["sort"][0] == {"title.title_raw": {"order": "asc"}}
    assert content["highlight"]["pre_tags"] == ['<em class="highlight">']


def test_user_text_cannot_break_framing(search_builder):
    req = SearchRequest(term='a$$b" } ] {', queries=["content"])
    pairs = _pairs(search_builder.build(req))
    assert len(pairs) == 1
    assert pairs[0][1]["suggest"]["search_suggest"]["text"] == 'a$$b" } ] {'


def test_filters(search_builder):
    req = SearchRequest(
        queries=["content"],
        types=["bulletin"],
        filter_on_latest=True,
        first_letter="C",
        released_after=Date.must_parse("2020-01-01"),
        uri_prefix="/economy",
        topics=["1234"],
        topic_wildcards=["12*"],
        published=True,
    )
    _, content = _pairs(search_builder.build(req))[0]
    filters = content["query"]["bool"]["filter"]
    assert filters[0] == {"terms": {"type": ["bulletin"]}}
    assert {"term": {"latest_release": True}} in filters
    assert {"prefix": {"title.title_first_letter": "c"}} in filters
    assert {"range": {"release_date": {"gte": "2020-01-01", "lte": None}}} in filters
    assert {"prefix": {"uri": "/economy"}} in filters
    assert {"term": {"published": True}} in filters
    assert {"bool": {"should": [{"wildcard": {"topics": {"value": "12*"}}}]}} in filters


def test_legacy_aggregation_field(search_builder):
    req = SearchRequest(queries=["counts"], aggregation_field="_type")
    _, counts = _pairs(search_builder.build(req))[0]
    assert counts["aggregations"]["docCounts"]["terms"]["field"] == "type"


# ----------------------- framing -----------------------


def test_format_multi_query_compacts_segments():
    out = format_multi_query('{"index": "ons"}$$\n{\n  "size": 1\n}$$\n')
    assert out == '{"index":"ons"}\n{"size":1}\n'


def test_invalid_json_segment_is_a_compile_error():
    with pytest.raises(CompileError) as ei:
        split_segments('{"index": "ons"}$${"size": }$$')
    assert ei.value.message == "Failed to create query"


def test_unpaired_segments_are_a_compile_error():
    with pytest.raises(CompileError):
        format_multi_query('{"index": "ons"}$$')


# ----------------------- release calendar -----------------------


def test_release_builder_returns_main_and_counts(release_builder):
    searches = release_builder.build(ReleaseSearchRequest(term="gdp"))
    assert len(searches) == 2
    assert searches[0].header == {"index": "ons"}

    main = json.loads(searches[0].body)
    assert main["query"]["bool"]["must"][0]["simple_query_string"]["query"] == "gdp"
    assert {"term": {"published": True}} in main["query"]["bool"]["filter"]
    assert main["sort"] == [{"release_date": "asc"}]
    assert set(main["aggregations"]) == {"breakdown", "census"}
    assert main["highlight"]["pre_tags"] == ['<em class="ons-highlight">']

    counts = json.loads(searches[1].body)
    assert counts["size"] == 0
    assert set(counts["aggregations"]["release_types"]["filters"]["filters"]) == {
        "published",
        "cancelled",
        "upcoming",
    }


def test_release_builder_renders_request_index(release_builder):
    searches = release_builder.build(ReleaseSearchRequest(index="ons_custom"))
    assert [s.header for s in searches] == [{"index": "ons_custom"}, {"index": "ons_custom"}]


def test_upcoming_with_sub_types(release_builder):
    req = ReleaseSearchRequest(
        type=ReleaseType.UPCOMING,
        provisional=True,
        sort=ReleaseSort.RELEVANCE,
        census=True,
        highlight=False,
        now=Date.must_parse("2022-03-04"),
    )
    main = json.loads(release_builder.build(req)[0].body)
    filters = main["query"]["bool"]["filter"]
    assert {"range": {"release_date": {"gte": "2022-03-04"}}} in filters
    assert {"term": {"finalised": False}} in filters
    assert {"term": {"survey": "census"}} in filters
    assert main["sort"] == [{"_score": "desc"}, {"release_date": "asc"}]
    assert "highlight" not in main


def test_no_dates_render_open_range(release_builder):
    main = json.loads(release_builder.build(ReleaseSearchRequest())[0].body)
    assert {"range": {"release_date": {"gte": None, "lte": None}}} in main["query"]["bool"]["filter"]


# ----------------------- lookups -----------------------


def test_data_query():
    body = LookupBuilder().build_data_query(["u1", "u2"], ["t"])
    assert body["size"] == 2
    assert body["query"]["bool"]["filter"] == [{"terms": {"uri": ["u1", "u2"]}}, {"terms": {"type": ["t"]}}]


def test_timeseries_query_lowercases_cdid():
    body = LookupBuilder().build_timeseries_query("MGSX")
    assert {"term": {"cdid": "mgsx"}} in body["query"]["bool"]["filter"]
    assert body["size"] == 1
