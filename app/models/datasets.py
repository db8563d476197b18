"""
Datasets catalogue payloads
===========================
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class IsBasedOn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: str = Field("", alias="@type")
    id: str = Field("", alias="@id")


class Link(BaseModel):
    href: str = ""
    id: str = ""


class DatasetDetails(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = ""
    collection_id: str = ""
    title: str = ""
    is_based_on: Optional[IsBasedOn] = None


class Dataset(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = ""
    current: Optional[DatasetDetails] = None


class DatasetList(BaseModel):
    items: List[Dataset] = Field(default_factory=list)
    count: int = 0
    offset: int = 0
    limit: int = 0
    total_count: int = 0


class EditionLinks(BaseModel):
    model_config = ConfigDict(extra="ignore")

    latest_version: Link = Field(default_factory=Link)


class Edition(BaseModel):
    model_config = ConfigDict(extra="ignore")

    edition: str = ""
    links: EditionLinks = Field(default_factory=EditionLinks)


class EditionsDetails(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = ""
    current: Edition = Field(default_factory=Edition)


class EditionRef(BaseModel):
    """A dataset edition whose latest version should be indexed."""

    dataset_id: str
    edition: str
    version: str
    collection_id: str = ""
    is_based_on: Optional[IsBasedOn] = None


class VersionDimension(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = ""
    name: str = ""
    label: str = ""
    is_area_type: Optional[bool] = None


class MetadataLinks(BaseModel):
    model_config = ConfigDict(extra="ignore")

    latest_version: Link = Field(default_factory=Link)
    edition: Link = Field(default_factory=Link)


class Metadata(BaseModel):
    """Version metadata from ``/datasets/{id}/editions/{e}/versions/{v}/metadata``."""

    model_config = ConfigDict(extra="ignore")

    title: str = ""
    description: str = ""
    keywords: Optional[List[str]] = None
    release_date: str = ""
    canonical_topic: str = ""
    subtopics: Optional[List[str]] = None
    dimensions: List[VersionDimension] = Field(default_factory=list)
    links: MetadataLinks = Field(default_factory=MetadataLinks)


class DatasetMetadata(BaseModel):
    metadata: Metadata
    dataset_id: str = ""
    is_based_on: Optional[IsBasedOn] = None
