"""
CMS (Zebedee) payloads
======================

Only the fields search needs are modelled; anything else in the page JSON is
ignored. ``SearchDataImport`` is the internal record both the CMS and the
datasets flow are mapped into before projection onto ``IndexedDocument``.
"""

from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class PublishedIndexItem(BaseModel):
    uri: str


class PublishedIndex(BaseModel):
    count: int = 0
    items: List[PublishedIndexItem] = Field(default_factory=list)
    offset: int = 0
    limit: int = 0
    total_count: int = 0


class PageDateChange(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    change_notice: str = Field("", alias="changeNotice")
    previous_date: str = Field("", alias="previousDate")


class PageDescription(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: str = ""
    summary: str = ""
    cdid: str = ""
    dataset_id: str = Field("", alias="datasetId")
    edition: str = ""
    keywords: Optional[List[str]] = None
    meta_description: str = Field("", alias="metaDescription")
    release_date: str = Field("", alias="releaseDate")
    topics: Optional[List[str]] = None
    canonical_topic: str = Field("", alias="canonicalTopic")
    language: str = ""
    survey: str = ""
    cancelled: bool = False
    finalised: bool = False
    published: bool = False
    provisional_date: str = Field("", alias="provisionalDate")


class PageData(BaseModel):
    """A published CMS page as returned by ``/publisheddata``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    uri: str = ""
    data_type: str = Field("", alias="type")
    description: PageDescription = Field(default_factory=PageDescription)
    date_changes: List[PageDateChange] = Field(default_factory=list, alias="dateChanges")


class SearchDataImport(BaseModel):
    uid: str = ""
    uri: str = ""
    data_type: str = ""
    title: str = ""
    summary: str = ""
    cdid: str = ""
    dataset_id: str = ""
    edition: str = ""
    keywords: List[str] = Field(default_factory=list)
    meta_description: str = ""
    release_date: str = ""
    topics: List[str] = Field(default_factory=list)
    canonical_topic: str = ""
    date_changes: List[PageDateChange] = Field(default_factory=list)
    cancelled: bool = False
    finalised: bool = False
    published: bool = False
    provisional_date: str = ""
    language: str = ""
    survey: str = ""
    population_name: str = ""
    population_label: str = ""
    # (name, raw label) pairs
    dimensions: List[Tuple[str, str]] = Field(default_factory=list)
