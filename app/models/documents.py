import re
from dataclasses import dataclass
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

_CATEGORY_COUNT = re.compile(r"\s*\(\d+ categor(?:y|ies)\)$", re.IGNORECASE)


def strip_category_count(raw_label: str) -> str:
    """'Age (7 categories)' -> 'Age'."""
    return _CATEGORY_COUNT.sub("", raw_label or "")


@dataclass
class Document:
    """One document on its way through the reindex pipeline."""

    id: str
    uri: str
    body: bytes


class DateChange(BaseModel):
    change_notice: str = ""
    previous_date: str = ""


class PopulationType(BaseModel):
    name: str = ""
    label: str = ""


class Dimension(BaseModel):
    name: str
    label: str = ""
    raw_label: str = ""

    @classmethod
    def from_raw(cls, name: str, raw_label: str) -> "Dimension":
        return cls(name=name, label=strip_category_count(raw_label), raw_label=raw_label)


class IndexedDocument(BaseModel):
    """Shape of a document in the search index."""

    model_config = ConfigDict(populate_by_name=True)

    data_type: str = Field(..., alias="type")
    uri: str
    cdid: Optional[str] = None
    dataset_id: Optional[str] = None
    edition: Optional[str] = None
    keywords: Optional[List[str]] = None
    meta_description: Optional[str] = None
    release_date: Optional[str] = None
    summary: Optional[str] = None
    title: Optional[str] = None
    topics: Optional[List[str]] = None
    canonical_topic: Optional[str] = None
    date_changes: Optional[List[DateChange]] = None
    cancelled: Optional[bool] = None
    finalised: Optional[bool] = None
    published: Optional[bool] = None
    provisional_date: Optional[str] = None
    language: Optional[str] = None
    survey: Optional[str] = None
    population_type: Optional[PopulationType] = None
    dimensions: Optional[List[Dimension]] = None

    def to_json(self) -> bytes:
        return self.model_dump_json(by_alias=True, exclude_none=True).encode("utf-8")
