from typing import Optional
from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str = Field(..., description='"OK" when the cluster is green or yellow, otherwise "error"')
    error: Optional[str] = Field(
        default=None, description="Raw cluster health line or probe error when degraded"
    )


class CreateIndexResponse(BaseModel):
    index_name: str = Field(..., description="Name of the newly created physical index")
