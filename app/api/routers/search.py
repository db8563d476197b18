"""
Search router
=============

Content search over the ``ons`` alias, plus the admin call that creates a
fresh physical index for a rebuild.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Header, Query, Response

from app.api.schemas import CreateIndexResponse
from app.core.config import settings
from app.core.errors import SearchAPIError, Unauthorized, UpstreamError
from app.lib.index_utils import create_search_index
from app.lib.search_utils import flag, json_response, run_multi_search, split_csv
from app.query.search import DEFAULT_CONTENT_TYPES, DEFAULT_QUERIES, SearchRequest
from app.query.validators import search_validators
from app.services.builders import search_builder
from app.services.es import es
from app.transformer.search import SearchTransformer

router = APIRouter(tags=["search"])

validators = search_validators()
transformer = SearchTransformer()


def require_service_token(authorization: Optional[str] = Header(None)) -> None:
    token = settings.SERVICE_AUTH_TOKEN
    if token and authorization != f"Bearer {token}":
        raise Unauthorized()


# ------------------------------ Endpoints ------------------------------------


# curl -s "http://localhost:8000/search?q=cpi&limit=10" | jq
@router.get(
    "/search",
    summary="Search published content",
    response_description="Items, facet counts and suggestions for the query",
)
def search(
    q: Optional[str] = Query(None, description="Free-text query", example="cpi"),
    term: Optional[str] = Query(None, description="Alias of q"),
    limit: str = Query("10", description="Page size, 0..1000"),
    offset: str = Query("0", description="Result offset"),
    sort: str = Query("relevance", description="relevance, title, release_date_asc, release_date_desc or first_letter"),
    content_type: List[str] = Query([], description="Content types, comma-separated or repeated"),
    topics: List[str] = Query([], description="Topic filter, comma-separated or repeated"),
    topic_wildcard: List[str] = Query([], description="Topic wildcard patterns"),
    query: List[str] = Query([], description="Sub-queries to run (content, counts, featured, ...)"),
    aggField: str = Query("type", description="Field the counts sub-query aggregates on"),
    highlight: Optional[str] = Query(None),
    latest: Optional[str] = Query(None, description="Only latest releases when true"),
    withFirstLetter: str = Query("", description="Title first-letter filter"),
    releasedAfter: str = Query("", description="YYYY-MM-DD"),
    releasedBefore: str = Query("", description="YYYY-MM-DD"),
    uriPrefix: str = Query(""),
    upcoming: Optional[str] = Query(None),
    published: Optional[str] = Query(None),
    raw: Optional[str] = Query(None, description="Return the Elasticsearch response untouched when true"),
) -> Response:
    """
    GET /search
    """
    text = q if q is not None else (term or "")

    req = SearchRequest(
        term=text,
        size=validators.validate("limit", limit),
        from_=validators.validate("offset", offset),
        sort=validators.validate("sort", sort),
        aggregation_field=validators.validate("aggField", aggField),
        queries=[validators.validate("query", name) for name in query] or list(DEFAULT_QUERIES),
        released_after=validators.validate("date", releasedAfter, "releasedAfter"),
        released_before=validators.validate("date", releasedBefore, "releasedBefore"),
        types=split_csv(content_type) or list(DEFAULT_CONTENT_TYPES),
        topics=split_csv(topics),
        topic_wildcards=split_csv(topic_wildcard),
        highlight=flag(highlight, default=True),
        filter_on_latest=flag(latest),
        first_letter=withFirstLetter,
        uri_prefix=uriPrefix,
        upcoming=flag(upcoming),
        published=flag(published),
        index=settings.SEARCH_INDEX,
    )

    body = search_builder.build(req)
    resp = run_multi_search(settings.SEARCH_INDEX, body)

    if flag(raw):
        return json_response(resp)
    return json_response(transformer.transform(resp, query=text, highlight=req.highlight))


@router.post(
    "/search",
    summary="Create a new search index",
    status_code=201,
    response_model=CreateIndexResponse,
    response_description="Name of the created physical index",
    dependencies=[Depends(require_service_token)],
)
def create_index() -> CreateIndexResponse:
    """
    POST /search

    Creates ``<alias><microseconds>`` from the shipped settings. The alias is
    not moved; the reindex run does that once the index is populated.
    """
    try:
        name = create_search_index(es, settings.SEARCH_INDEX)
    except UpstreamError as exc:
        raise SearchAPIError("Failed to create index for search", exc.cause) from exc
    return CreateIndexResponse(index_name=name)
