"""
Release calendar router
=======================
"""

from typing import Optional

from fastapi import APIRouter, Query, Response

from app.core.config import settings
from app.core.errors import BadRequest
from app.lib.search_utils import flag, json_response, run_multi_search, sanitise_double_quotes
from app.query.releases import ReleaseSearchRequest
from app.query.validators import release_validators
from app.services.builders import release_builder
from app.transformer.releases import ReleaseTransformer

router = APIRouter(tags=["releases"])

validators = release_validators()
transformer = ReleaseTransformer()

# ------------------------------ Endpoints ------------------------------------


# curl -s "http://localhost:8000/search/releases?query=gdp&release-type=type-upcoming" | jq
@router.get(
    "/search/releases",
    summary="Search the release calendar",
    response_description="Releases plus a breakdown of counts per release type",
)
def search_releases(
    query: str = Query("", description="Free-text query"),
    limit: str = Query("10"),
    offset: str = Query("0"),
    sort: str = Query("release_date_asc", description="release_date_asc, release_date_desc, title_asc, title_desc or relevance"),
    fromDate: str = Query("", description="YYYY-MM-DD"),
    toDate: str = Query("", description="YYYY-MM-DD"),
    release_type: str = Query("type-published", alias="release-type"),
    provisional: Optional[str] = Query(None, alias="subtype-provisional"),
    confirmed: Optional[str] = Query(None, alias="subtype-confirmed"),
    postponed: Optional[str] = Query(None, alias="subtype-postponed"),
    census: Optional[str] = Query(None),
    highlight: Optional[str] = Query(None),
    raw: Optional[str] = Query(None),
) -> Response:
    """
    GET /search/releases
    """
    size = validators.validate("limit", limit)
    from_ = validators.validate("offset", offset)
    released_after = validators.validate("date", fromDate, "dateFrom")
    released_before = validators.validate("date", toDate, "dateTo")
    if released_after.after(released_before):
        raise BadRequest("invalid dates - 'from' after 'to'")

    req = ReleaseSearchRequest(
        index=settings.SEARCH_INDEX,
        term=sanitise_double_quotes(query),
        from_=from_,
        size=size,
        sort=validators.validate("sort", sort),
        released_after=released_after,
        released_before=released_before,
        type=validators.validate("release-type", release_type),
        provisional=flag(provisional),
        confirmed=flag(confirmed),
        postponed=flag(postponed),
        census=flag(census),
        highlight=flag(highlight, default=True),
    )

    searches = release_builder.build(req)
    resp = run_multi_search(settings.SEARCH_INDEX, searches, decode_kind="search release")

    if flag(raw):
        return json_response(resp)
    return json_response(transformer.transform(resp, req))
