"""
Document transformation
=======================

CMS pages and dataset version metadata are both mapped into a
``SearchDataImport`` and then projected onto the ``IndexedDocument`` stored in
the index. Document ids are the path-escaped URI.
"""

import logging
from typing import Any, List, Optional, Tuple
from urllib.parse import quote, urlparse

from pydantic import ValidationError as ModelValidationError

from app.models.cms import PageData, SearchDataImport
from app.models.datasets import DatasetMetadata
from app.models.documents import DateChange, Dimension, Document, IndexedDocument, PopulationType

DATASET_LANDING_PAGE = "dataset_landing_page"
RELEASE = "release"

# dataset types whose documents carry a population type and take their type from the dataset
CANTABULAR_TYPES = (
    "cantabular_flexible_table",
    "cantabular_multivariate_table",
    "cantabular_table",
)

POPULATION_TYPES = {
    "UR": "All usual residents",
    "UR_HH": "All usual residents in households",
    "UR_CE": "All usual residents in communal establishments",
    "HH": "All households",
    "HRP": "All household reference persons",
    "FAM": "All families in households",
}

log = logging.getLogger(__name__)


class TransformFailed(Exception):
    def __init__(self, uri: str, cause: BaseException):
        super().__init__(f"failed to transform {uri}: {cause}")
        self.uri = uri
        self.cause = cause


def document_id(uri: str) -> str:
    return quote(uri, safe="")


def ids_from_uri(uri: str) -> Tuple[str, str, str]:
    """``/datasets/{id}/editions/{edition}/versions/{version}`` -> (id, edition, version)."""
    parts = urlparse(uri).path.split("/")
    if len(parts) < 7:
        raise ValueError(f"not enough segments in version path {uri!r}")
    return parts[2], parts[4], parts[6]


# ------------------------------ CMS pages -----------------------------------


def page_to_import(page: PageData, uri: str) -> SearchDataImport:
    d = page.description
    imp = SearchDataImport(
        uid=uri,
        uri=uri,
        data_type=page.data_type,
        title=d.title,
        summary=d.summary,
        cdid=d.cdid,
        dataset_id=d.dataset_id,
        edition=d.edition,
        keywords=d.keywords or [],
        meta_description=d.meta_description,
        release_date=d.release_date,
        topics=d.topics or [],
        canonical_topic=d.canonical_topic,
    )
    if page.data_type == RELEASE:
        imp.date_changes = list(page.date_changes)
        imp.cancelled = d.cancelled
        imp.finalised = d.finalised
        imp.published = d.published
        imp.provisional_date = d.provisional_date
        imp.language = d.language
        imp.survey = d.survey
    return imp


def transform_page(doc: Document) -> Document:
    try:
        page = PageData.model_validate_json(doc.body)
        body = to_indexed_document(page_to_import(page, doc.uri)).to_json()
    except (ModelValidationError, ValueError) as exc:
        raise TransformFailed(doc.uri, exc) from exc
    return Document(id=document_id(doc.uri), uri=doc.uri, body=body)


# --------------------------- Dataset metadata -------------------------------


def metadata_to_import(dm: DatasetMetadata) -> SearchDataImport:
    m = dm.metadata
    uri = urlparse(m.links.latest_version.href).path
    try:
        dataset_id, edition, _ = ids_from_uri(uri)
    except ValueError:
        dataset_id, edition = dm.dataset_id, m.links.edition.id

    imp = SearchDataImport(
        uid=dm.dataset_id,
        uri=uri,
        data_type=DATASET_LANDING_PAGE,
        dataset_id=dataset_id,
        edition=edition,
        title=m.title,
        summary=m.description,
        keywords=m.keywords or [],
        release_date=m.release_date,
        canonical_topic=m.canonical_topic,
        topics=m.subtopics or [],
        dimensions=[(d.id or d.name, d.label) for d in m.dimensions if not d.is_area_type],
    )

    based_on = dm.is_based_on
    if based_on is not None and based_on.type in CANTABULAR_TYPES:
        imp.data_type = based_on.type
        imp.population_name = based_on.id
        imp.population_label = POPULATION_TYPES.get(based_on.id, "")
    return imp


def transform_metadata(dm: DatasetMetadata) -> Document:
    imp = metadata_to_import(dm)
    try:
        body = to_indexed_document(imp).to_json()
    except (ModelValidationError, ValueError) as exc:
        raise TransformFailed(imp.uri, exc) from exc
    return Document(id=document_id(imp.uri), uri=imp.uri, body=body)


# ------------------------------ Projection ----------------------------------


def _str(value: str) -> Optional[str]:
    return value or None


def _list(values: List[Any]) -> Optional[List[Any]]:
    return list(values) or None


def to_indexed_document(imp: SearchDataImport) -> IndexedDocument:
    doc = IndexedDocument(
        data_type=imp.data_type,
        uri=imp.uri,
        cdid=_str(imp.cdid),
        dataset_id=_str(imp.dataset_id),
        edition=_str(imp.edition),
        keywords=_list(imp.keywords),
        meta_description=_str(imp.meta_description),
        release_date=_str(imp.release_date),
        summary=_str(imp.summary),
        title=_str(imp.title),
        topics=_list(imp.topics),
        canonical_topic=_str(imp.canonical_topic),
        provisional_date=_str(imp.provisional_date),
        language=_str(imp.language),
        survey=_str(imp.survey),
        dimensions=_list([Dimension.from_raw(name, raw) for name, raw in imp.dimensions]),
    )
    if imp.data_type == RELEASE:
        # the release calendar filters on these, so false must be stored too
        doc.cancelled = imp.cancelled
        doc.finalised = imp.finalised
        doc.published = imp.published
        doc.date_changes = [
            DateChange(change_notice=dc.change_notice, previous_date=dc.previous_date)
            for dc in imp.date_changes
        ]
    if imp.population_name:
        doc.population_type = PopulationType(name=imp.population_name, label=imp.population_label)
    return doc
