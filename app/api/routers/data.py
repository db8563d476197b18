"""
Data lookup router
==================

Documents by URI (optionally narrowed by type), and the latest timeseries
document for a CDID. Neither response is transformed; ``/data`` keeps the
legacy multi-search envelope.
"""

from typing import List

from fastapi import APIRouter, Path, Query, Response

from app.core.config import settings
from app.lib.search_utils import json_response, run_search
from app.services.builders import lookup_builder

router = APIRouter(tags=["data"])

# ------------------------------ Endpoints ------------------------------------


# curl -s "http://localhost:8000/data?uris=/economy&types=taxonomy_landing_page" | jq
@router.get(
    "/data",
    summary="Look up documents by URI",
    response_description='{"responses": [<raw Elasticsearch response>]}',
)
def get_data(
    uris: List[str] = Query([], description="Document URIs (repeatable)"),
    types: List[str] = Query([], description="Restrict to these content types (repeatable)"),
) -> Response:
    """
    GET /data
    """
    body = lookup_builder.build_data_query(uris, types)
    resp = run_search(settings.SEARCH_INDEX, body, kind="data")
    return json_response({"responses": [resp]})


@router.get(
    "/timeseries/{cdid}",
    summary="Latest timeseries for a CDID",
    response_description="Raw Elasticsearch response",
)
def get_timeseries(
    cdid: str = Path(..., description="Four-character series identifier", example="MGSX"),
) -> Response:
    """
    GET /timeseries/{cdid}
    """
    body = lookup_builder.build_timeseries_query(cdid)
    return json_response(run_search(settings.SEARCH_INDEX, body, kind="timeseries"))
