from typing import Any, Dict, Iterable, List

# ---------------- Read ES response blocks ------------------------


def hits_total(resp: Dict[str, Any]) -> int:
    """ES 6 reports hits.total as an int, ES 7+ as {"value": n, "relation": ...}."""
    hits = resp.get("hits", {}) or {}
    total = hits.get("total", 0)
    if isinstance(total, dict):
        total = total.get("value", 0)
    return int(total or 0)


def hits_list(resp: Dict[str, Any]) -> List[Dict[str, Any]]:
    hits = resp.get("hits", {}) or {}
    return hits.get("hits", []) or []


def agg_buckets(resp: Dict[str, Any], name: str) -> List[Dict[str, Any]]:
    """Buckets of a terms aggregation, or [] when the aggregation is absent."""
    aggs = resp.get("aggregations", {}) or {}
    agg = aggs.get(name) or {}
    buckets = agg.get("buckets", []) or []
    return buckets if isinstance(buckets, list) else []


def filter_bucket_count(resp: Dict[str, Any], agg: str, bucket: str) -> int:
    """doc_count of a named bucket in a filters aggregation (buckets keyed by name)."""
    aggs = resp.get("aggregations", {}) or {}
    buckets = (aggs.get(agg) or {}).get("buckets", {}) or {}
    if not isinstance(buckets, dict):
        return 0
    return int((buckets.get(bucket) or {}).get("doc_count", 0))


# ---------------- Prune empty fields helper ----------------------
# Remove keys with blank values (None, "", [], etc) from a dict so optional
# blocks are left out of public responses instead of rendered empty

def _is_blank(x: Any) -> bool:
    if x is None:
        return True
    if isinstance(x, str):
        return x.strip() == ""
    if isinstance(x, (list, tuple, set)):
        return len(x) == 0 or all(_is_blank(i) for i in x)
    if isinstance(x, dict):
        return len(x) == 0
    return False

def prune_empty_fields(doc: Dict[str, Any], keys: Iterable[str]) -> Dict[str, Any]:
    if not isinstance(doc, dict):
        return doc
    for k in keys:
        v = doc.get(k)
        if _is_blank(v):
            doc.pop(k, None)
    return doc
