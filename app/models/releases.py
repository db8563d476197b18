from typing import List, Optional

from pydantic import BaseModel, Field


class Breakdown(BaseModel):
    total: int = 0
    provisional: int = 0
    confirmed: int = 0
    postponed: int = 0
    published: int = 0
    cancelled: int = 0
    census: int = 0


class ReleaseDateChange(BaseModel):
    change_notice: str = ""
    previous_date: str = ""


class ReleaseDescription(BaseModel):
    title: str = ""
    summary: str = ""
    release_date: str = ""
    published: bool = False
    cancelled: bool = False
    finalised: bool = False
    postponed: bool = False
    census: bool = False
    keywords: Optional[List[str]] = None
    provisional_date: Optional[str] = None
    language: Optional[str] = None
    canonical_topic: Optional[str] = None


class ReleaseHighlight(BaseModel):
    keywords: Optional[List[str]] = None
    summary: Optional[str] = None
    title: Optional[str] = None


class Release(BaseModel):
    uri: str
    date_changes: List[ReleaseDateChange] = Field(default_factory=list)
    description: ReleaseDescription
    highlight: Optional[ReleaseHighlight] = None


class ReleaseResponse(BaseModel):
    took: int = 0
    limit: int = 0
    offset: int = 0
    breakdown: Breakdown = Field(default_factory=Breakdown)
    releases: List[Release] = Field(default_factory=list)
