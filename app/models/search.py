from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class Count(BaseModel):
    type: str
    count: int


class LabelledCount(BaseModel):
    type: str
    label: str = ""
    count: int


class SearchResponse(BaseModel):
    took: int = 0
    count: int = Field(0, description="Total hits of the first sub-query")
    content_types: List[Count] = Field(default_factory=list)
    topics: List[Count] = Field(default_factory=list)
    population_type: List[LabelledCount] = Field(default_factory=list)
    dimensions: List[LabelledCount] = Field(default_factory=list)
    items: List[Dict[str, Any]] = Field(default_factory=list)
    suggestions: Optional[List[str]] = None
    additional_suggestions: Optional[List[str]] = None
