from app.lib.highlight import Match, find_matches, strip_tags

EM = '<em class="highlight">'


def test_single_match():
    text, matches = find_matches(f"single {EM}value</em>")
    assert text == "single value"
    assert matches == [Match(8, 12)]


def test_multiple_matches():
    text, matches = find_matches(f"{EM}Consumer</em> price {EM}inflation</em>")
    assert text == "Consumer price inflation"
    assert [m.as_dict() for m in matches] == [{"start": 1, "end": 8}, {"start": 16, "end": 24}]


def test_offsets_are_utf8_bytes():
    # "é" is two bytes
    text, matches = find_matches(f"café {EM}prices</em>")
    assert text == "café prices"
    assert matches == [Match(7, 12)]


def test_no_tags():
    assert find_matches("plain text") == ("plain text", [])


def test_unclosed_tag_stops_the_scan():
    text, matches = find_matches(f"{EM}a</em> {EM}b")
    assert matches == [Match(1, 1)]
    assert text == f"a {EM}b"


def test_custom_tags_and_strip():
    text, matches = find_matches("x <b>y</b>", pre="<b>", post="</b>")
    assert (text, matches) == ("x y", [Match(3, 3)])
    assert strip_tags(f"{EM}gdp</em> q1") == "gdp q1"


def test_value_only_serialised_when_set():
    assert Match(1, 2).as_dict() == {"start": 1, "end": 2}
    assert Match(1, 2, "kw").as_dict() == {"start": 1, "end": 2, "value": "kw"}
