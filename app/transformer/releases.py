"""
Release calendar response transformer
=====================================

Expects exactly the two sub-responses the release builder asks for: the main
query (hits, ``breakdown`` and ``census`` aggregations) followed by the
counts query (``release_types`` filters aggregation, each bucket with its own
upcoming ``breakdown``).
"""

import json
from typing import Any, Callable, Dict, List, Optional

from app.core.errors import EmptyResponses, TransformError
from app.lib.es_utils import filter_bucket_count, hits_list, hits_total
from app.lib.highlight import strip_tags
from app.models.releases import (
    Breakdown,
    Release,
    ReleaseDateChange,
    ReleaseDescription,
    ReleaseHighlight,
    ReleaseResponse,
)
from app.query.params import ReleaseType
from app.query.releases import ReleaseSearchRequest
from app.transformer.search import RawResponse, decode_envelope

RELEASE_QUERIES = 2
HIGHLIGHT_PRE = '<em class="ons-highlight">'
HIGHLIGHT_POST = "</em>"

CensusPredicate = Callable[[Dict[str, Any]], bool]


def survey_is_census(source: Dict[str, Any]) -> bool:
    return source.get("survey") == "census"


def is_postponed(source: Dict[str, Any]) -> bool:
    return bool(source.get("finalised")) and bool(source.get("date_changes"))


def _nested_count(resp: Dict[str, Any], agg: str, bucket: str, sub: str) -> int:
    buckets = ((resp.get("aggregations") or {}).get(agg) or {}).get("buckets") or {}
    inner = (buckets.get(bucket) or {}) if isinstance(buckets, dict) else {}
    # sub-aggregations sit directly inside a filters bucket
    sub_buckets = (inner.get("breakdown") or {}).get("buckets") or {}
    return int((sub_buckets.get(sub) or {}).get("doc_count", 0))


def breakdown(responses: List[Dict[str, Any]], req: ReleaseSearchRequest) -> Breakdown:
    main, counts = responses[0], responses[1]
    b = Breakdown(total=hits_total(main))

    if req.type is ReleaseType.UPCOMING:
        b.provisional = filter_bucket_count(main, "breakdown", "provisional")
        b.confirmed = filter_bucket_count(main, "breakdown", "confirmed")
        b.postponed = filter_bucket_count(main, "breakdown", "postponed")
        b.published = filter_bucket_count(counts, "release_types", "published")
        b.cancelled = filter_bucket_count(counts, "release_types", "cancelled")
    else:
        if req.type is ReleaseType.PUBLISHED:
            b.published = hits_total(main)
            b.cancelled = filter_bucket_count(counts, "release_types", "cancelled")
        else:
            b.cancelled = hits_total(main)
            b.published = filter_bucket_count(counts, "release_types", "published")
        b.provisional = _nested_count(counts, "release_types", "upcoming", "provisional")
        b.confirmed = _nested_count(counts, "release_types", "upcoming", "confirmed")
        b.postponed = _nested_count(counts, "release_types", "upcoming", "postponed")

    b.census = filter_bucket_count(main, "census", "census")
    return b


def _overlay_item(hl: Optional[List[str]], default: str) -> str:
    return hl[0] if hl else default


def _overlay_list(hl: Optional[List[str]], default: Optional[List[str]]) -> Optional[List[str]]:
    if default is None or hl is None:
        return None
    overlaid = list(default)
    for fragment in hl:
        plain = strip_tags(fragment, HIGHLIGHT_PRE, HIGHLIGHT_POST)
        overlaid = [fragment if kw == plain else kw for kw in overlaid]
    return overlaid


class ReleaseTransformer:
    def __init__(self, is_census: CensusPredicate = survey_is_census):
        self.is_census = is_census

    def transform(self, raw: RawResponse, req: ReleaseSearchRequest) -> bytes:
        responses = decode_envelope(raw, kind="search release")
        if not responses:
            raise EmptyResponses(kind="search release")
        if len(responses) != RELEASE_QUERIES:
            raise TransformError(ValueError(f"expected {RELEASE_QUERIES} responses, got {len(responses)}"))

        try:
            rr = ReleaseResponse(
                took=sum(int(r.get("took", 0) or 0) for r in responses),
                limit=req.size,
                offset=req.from_,
                breakdown=breakdown(responses, req),
                releases=[self._build_release(hit, req.highlight) for hit in hits_list(responses[0])],
            )
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise TransformError(exc) from exc

        return json.dumps(rr.model_dump(exclude_none=True), ensure_ascii=False).encode("utf-8")

    def _build_release(self, hit: Dict[str, Any], highlight: bool) -> Release:
        sd = hit.get("_source") or {}
        hl = hit.get("highlight") or {}

        release = Release(
            uri=sd.get("uri", ""),
            date_changes=[
                ReleaseDateChange(
                    change_notice=dc.get("change_notice", ""),
                    previous_date=dc.get("previous_date", ""),
                )
                for dc in sd.get("date_changes") or []
            ],
            description=ReleaseDescription(
                title=sd.get("title", ""),
                summary=sd.get("summary", ""),
                release_date=sd.get("release_date", ""),
                published=bool(sd.get("published")),
                cancelled=bool(sd.get("cancelled")),
                finalised=bool(sd.get("finalised")),
                postponed=is_postponed(sd),
                census=self.is_census(sd),
                keywords=sd.get("keywords"),
                provisional_date=sd.get("provisional_date") or None,
                language=sd.get("language") or None,
                canonical_topic=sd.get("canonical_topic") or None,
            ),
        )

        if highlight:
            release.highlight = ReleaseHighlight(
                keywords=_overlay_list(hl.get("keywords"), sd.get("keywords")),
                summary=_overlay_item(hl.get("summary"), sd.get("summary", "")),
                title=_overlay_item(hl.get("title"), sd.get("title", "")),
            )
        return release
