import json
import logging
from typing import Any, Dict, List, Optional, Sequence, Union

from fastapi import Response

from app.clients.elastic import Search
from app.core.errors import DecodeError, UpstreamError
from app.services.es import es

log = logging.getLogger("uvicorn.error")

SUCCESS_CONTENT_TYPE = "application/json;charset=utf-8"


def _ensure_object(raw: Any, kind: str) -> Dict[str, Any]:
    if isinstance(raw, (bytes, str)):
        try:
            raw = json.loads(raw)
        except ValueError as exc:
            log.error("elasticsearch returned invalid JSON for %s query", kind)
            raise DecodeError(exc, kind=kind) from exc
    if not isinstance(raw, dict):
        log.error("elasticsearch returned a non-object body for %s query", kind)
        raise DecodeError(kind=kind)
    return raw


def run_multi_search(
    index: str,
    body: Union[str, Sequence[Search]],
    *,
    kind: str = "search",
    decode_kind: str = "",
) -> Dict[str, Any]:
    """
    Send a multi-search and return the decoded response object.

    Behaviour
    - Transport/cluster failures raise UpstreamError ("Failed to run <kind> query").
    - Non-JSON or non-object bodies raise DecodeError
      ("Failed to process <decode_kind or kind> query").
    """
    decode_kind = decode_kind or kind
    try:
        raw = es.multi_search(index, body)
    except UpstreamError as exc:
        raise UpstreamError(exc.upstream, exc.cause, kind=kind) from exc
    except DecodeError as exc:
        raise DecodeError(exc.cause, kind=decode_kind) from exc
    return _ensure_object(raw, decode_kind)


def run_search(index: str, body: Dict[str, Any], *, kind: str) -> Dict[str, Any]:
    """Single search; same error contract as run_multi_search."""
    try:
        raw = es.search(index, body)
    except UpstreamError as exc:
        raise UpstreamError(exc.upstream, exc.cause, kind=kind) from exc
    except DecodeError as exc:
        raise DecodeError(exc.cause, kind=kind) from exc
    return _ensure_object(raw, kind)


# ------------------------------ Request helpers ------------------------------


def flag(value: Optional[str], default: bool = False) -> bool:
    """Boolean query parameter: absent means ``default``, otherwise only "true" is true."""
    if value is None:
        return default
    return value == "true"


def split_csv(values: Sequence[str]) -> List[str]:
    """Flatten repeated and comma-separated parameter values, dropping blanks."""
    out: List[str] = []
    for value in values or []:
        out += [v.strip() for v in value.split(",") if v.strip()]
    return out


def sanitise_double_quotes(term: str) -> str:
    """Drop the last double quote when the quotes in ``term`` are unbalanced."""
    if term.count('"') % 2:
        i = term.rfind('"')
        term = term[:i] + term[i + 1 :]
    return term


def json_response(content: Union[bytes, Dict[str, Any]], status_code: int = 200) -> Response:
    if not isinstance(content, bytes):
        content = json.dumps(content, ensure_ascii=False).encode("utf-8")
    return Response(content=content, status_code=status_code, media_type=SUCCESS_CONTENT_TYPE)
