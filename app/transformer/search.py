"""
Search response transformer
===========================

Maps the raw multi-search envelope ``{"responses": [...]}`` onto the public
``SearchResponse`` shape. Sub-responses are positional: the first one is the
content query, whose hits become ``items`` and whose total becomes ``count``.
Aggregations and suggestions are collected from every sub-response.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional, Union

from app.core.errors import DecodeError, EmptyResponses, TransformError
from app.lib.es_utils import agg_buckets, hits_list, hits_total, prune_empty_fields
from app.lib.highlight import find_matches
from app.models.search import Count, LabelledCount, SearchResponse

RawResponse = Union[bytes, str, Dict[str, Any]]

# aggregation name -> public facet
CONTENT_TYPE_AGGS = ("docCounts", "content_types")
TOPIC_AGG = "topic"
DIMENSIONS_AGG = "dimensions"
POPULATION_TYPE_AGG = "population_type"

_QUERY_TERMS = re.compile(r'"[^"]*"|\S+')

log = logging.getLogger(__name__)


def decode_envelope(raw: RawResponse, kind: str = "search") -> List[Dict[str, Any]]:
    """Return the ``responses`` list of a multi-search body."""
    if isinstance(raw, (bytes, str)):
        try:
            raw = json.loads(raw)
        except ValueError as exc:
            raise DecodeError(exc, kind=kind) from exc
    if not isinstance(raw, dict):
        raise DecodeError(kind=kind)
    responses = raw.get("responses")
    if not isinstance(responses, list) or not all(isinstance(r, dict) for r in responses):
        raise DecodeError(kind=kind)
    return responses


def additional_suggestions(query: str) -> List[str]:
    """Split a query into terms, keeping double-quoted phrases whole."""
    return _QUERY_TERMS.findall(query or "")


class SearchTransformer:
    def transform(self, raw: RawResponse, query: str = "", highlight: bool = True) -> bytes:
        responses = decode_envelope(raw)
        if not responses:
            raise EmptyResponses()

        try:
            sr = self._transform(responses, highlight)
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise TransformError(exc) from exc

        if sr.count == 0:
            sr.additional_suggestions = additional_suggestions(query)

        return json.dumps(sr.model_dump(exclude_none=True), ensure_ascii=False).encode("utf-8")

    def _transform(self, responses: List[Dict[str, Any]], highlight: bool) -> SearchResponse:
        first = responses[0]
        sr = SearchResponse(
            count=hits_total(first),
            took=sum(int(r.get("took", 0) or 0) for r in responses),
            items=[self._build_item(hit, highlight) for hit in hits_list(first)],
        )

        suggestions: List[str] = []
        dim_buckets: List[Dict[str, Any]] = []
        pop_buckets: List[Dict[str, Any]] = []
        for i, resp in enumerate(responses):
            if "error" in resp:
                log.warning("sub-query %d returned an error: %s", i, resp["error"])
                continue
            for name in CONTENT_TYPE_AGGS:
                sr.content_types += [_count(b) for b in agg_buckets(resp, name)]
            sr.topics += [_count(b) for b in agg_buckets(resp, TOPIC_AGG)]
            dim_buckets += agg_buckets(resp, DIMENSIONS_AGG)
            pop_buckets += agg_buckets(resp, POPULATION_TYPE_AGG)

            suggest = (resp.get("suggest") or {}).get("search_suggest") or []
            for entry in suggest:
                suggestions += [opt["text"] for opt in entry.get("options") or []]

        sr.dimensions = [
            LabelledCount(type=str(b["key"]), label=_dimension_label(sr.items, b["key"]), count=b["doc_count"])
            for b in dim_buckets
        ]
        sr.population_type = [
            LabelledCount(type=str(b["key"]), label=_population_label(sr.items, b["key"]), count=b["doc_count"])
            for b in pop_buckets
        ]
        if suggestions:
            sr.suggestions = suggestions
        return sr

    def _build_item(self, hit: Dict[str, Any], highlight: bool) -> Dict[str, Any]:
        item = dict(hit.get("_source") or {})
        if highlight and hit.get("highlight"):
            item["highlight"] = build_highlight(hit["highlight"], item)
            prune_empty_fields(item, keys=("highlight",))
        return item


def build_highlight(hl: Dict[str, List[str]], source: Dict[str, Any]) -> Dict[str, List[Dict[str, Any]]]:
    """
    Turn ES highlight fragments into match offsets per field. List-valued
    fields (e.g. keywords) carry the stripped fragment as ``value`` so the
    caller can tell which list entry each match belongs to.
    """
    out: Dict[str, List[Dict[str, Any]]] = {}
    for field, fragments in hl.items():
        is_list = isinstance(_lookup(source, field), list)
        matches = []
        for fragment in fragments or []:
            stripped, found = find_matches(fragment)
            for m in found:
                if is_list:
                    m.value = stripped
                matches.append(m.as_dict())
        if matches:
            out[field] = matches
    return out


def _lookup(doc: Dict[str, Any], dotted: str) -> Optional[Any]:
    node: Any = doc
    for part in dotted.split("."):
        if not isinstance(node, dict):
            return None
        node = node.get(part)
    return node


def _count(bucket: Dict[str, Any]) -> Count:
    return Count(type=str(bucket["key"]), count=bucket["doc_count"])


def _dimension_label(items: List[Dict[str, Any]], name: str) -> str:
    for item in items:
        for dim in item.get("dimensions") or []:
            if dim.get("name") == name:
                return dim.get("label", "")
    return ""


def _population_label(items: List[Dict[str, Any]], name: str) -> str:
    for item in items:
        pop = item.get("population_type") or {}
        if pop.get("name") == name:
            return pop.get("label", "")
    return ""
