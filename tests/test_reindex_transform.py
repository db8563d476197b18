import json

import pytest

from app.models.datasets import DatasetMetadata, IsBasedOn, Link, Metadata, MetadataLinks, VersionDimension
from app.models.documents import Document, strip_category_count
from app.reindex.transform import (
    TransformFailed,
    document_id,
    ids_from_uri,
    metadata_to_import,
    transform_metadata,
    transform_page,
)

VERSION_HREF = "http://localhost:22000/datasets/TS009/editions/2021/versions/1"


def _page(**overrides):
    page = {
        "uri": "/economy/inflationandpriceindices/bulletins/consumerpriceinflation/june2022",
        "type": "bulletin",
        "description": {
            "title": "Consumer price inflation, UK: June 2022",
            "summary": "Price indices",
            "keywords": ["cpi", "inflation"],
            "metaDescription": "CPI",
            "releaseDate": "2022-07-20T06:00:00.000Z",
            "datasetId": "",
            "canonicalTopic": "1234",
        },
    }
    page.update(overrides)
    return page


def _doc(page):
    return Document(id="", uri=page["uri"], body=json.dumps(page).encode())


# ----------------------- CMS pages -----------------------


def test_generic_page():
    page = _page()
    out = transform_page(_doc(page))
    assert out.id == document_id(page["uri"])
    assert "/" not in out.id

    body = json.loads(out.body)
    assert body["type"] == "bulletin"
    assert body["title"] == "Consumer price inflation, UK: June 2022"
    assert body["meta_description"] == "CPI"
    assert body["release_date"] == "2022-07-20T06:00:00.000Z"
    assert body["canonical_topic"] == "1234"
    # empty values are not stored
    assert "dataset_id" not in body
    assert "published" not in body
    assert "date_changes" not in body


def test_release_page_keeps_calendar_flags():
    page = _page(
        type="release",
        dateChanges=[{"changeNotice": "Moved", "previousDate": "2022-06-01"}],
        description={"title": "GDP", "finalised": True, "survey": "census", "language": "en"},
    )
    body = json.loads(transform_page(_doc(page)).body)
    assert body["published"] is False
    assert body["cancelled"] is False
    assert body["finalised"] is True
    assert body["survey"] == "census"
    assert body["date_changes"] == [{"change_notice": "Moved", "previous_date": "2022-06-01"}]


def test_invalid_page_json():
    with pytest.raises(TransformFailed) as ei:
        transform_page(Document(id="", uri="/broken", body=b"{not json"))
    assert ei.value.uri == "/broken"


# ----------------------- dataset metadata -----------------------


def _metadata(based_on=None):
    return DatasetMetadata(
        dataset_id="TS009",
        is_based_on=based_on,
        metadata=Metadata(
            title="Sex by single year of age",
            description="Census 2021",
            keywords=["age"],
            release_date="2022-11-02T00:00:00.000Z",
            dimensions=[
                VersionDimension(id="ltla", name="ltla", label="Lower tier local authorities", is_area_type=True),
                VersionDimension(id="sex", name="Sex", label="Sex (2 categories)"),
                VersionDimension(name="age", label="Age (101 categories)"),
            ],
            links=MetadataLinks(latest_version=Link(href=VERSION_HREF, id="1"), edition=Link(id="2021")),
        ),
    )


def test_cantabular_dataset():
    dm = _metadata(IsBasedOn(type="cantabular_flexible_table", id="UR_HH"))
    out = transform_metadata(dm)
    assert out.uri == "/datasets/TS009/editions/2021/versions/1"
    assert out.id == document_id(out.uri)

    body = json.loads(out.body)
    assert body["type"] == "cantabular_flexible_table"
    assert body["dataset_id"] == "TS009"
    assert body["edition"] == "2021"
    assert body["population_type"] == {"name": "UR_HH", "label": "All usual residents in households"}
    assert body["dimensions"] == [
        {"name": "sex", "label": "Sex", "raw_label": "Sex (2 categories)"},
        {"name": "age", "label": "Age", "raw_label": "Age (101 categories)"},
    ]


def test_non_cantabular_dataset_is_a_landing_page():
    body = json.loads(transform_metadata(_metadata(IsBasedOn(type="cmd", id="x"))).body)
    assert body["type"] == "dataset_landing_page"
    assert "population_type" not in body


def test_unparseable_version_link_falls_back_to_ids():
    dm = _metadata()
    dm.metadata.links.latest_version.href = "http://localhost/somewhere"
    imp = metadata_to_import(dm)
    assert (imp.dataset_id, imp.edition) == ("TS009", "2021")


# ----------------------- helpers -----------------------


def test_ids_from_uri():
    assert ids_from_uri("/datasets/cpih01/editions/time-series/versions/3") == ("cpih01", "time-series", "3")
    with pytest.raises(ValueError):
        ids_from_uri("/datasets/cpih01")


@pytest.mark.parametrize(
    "raw,label",
    [("Age (7 categories)", "Age"), ("Sex (1 category)", "Sex"), ("Region", "Region"), ("", "")],
)
def test_strip_category_count(raw, label):
    assert strip_category_count(raw) == label
