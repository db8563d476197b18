import json
from typing import List

from app.core.errors import CompileError

SEPARATOR = "$$"


def compact_json(segment: str) -> str:
    """Collapse a rendered JSON document onto one line."""
    return json.dumps(json.loads(segment), separators=(",", ":"), ensure_ascii=False)


def split_segments(rendered: str) -> List[str]:
    """
    Split rendered template output on the ``$$`` sentinel and compact every
    segment. Whitespace-only segments (the tail after the final sentinel) are
    dropped.
    """
    out: List[str] = []
    for segment in rendered.split(SEPARATOR):
        if not segment.strip():
            continue
        try:
            out.append(compact_json(segment))
        except ValueError as exc:
            raise CompileError(exc) from exc
    return out


def format_multi_query(rendered: str) -> str:
    """Rendered ``header$$body$$...`` text to multi-search wire format."""
    segments = split_segments(rendered)
    if len(segments) % 2:
        raise CompileError(ValueError("multi-search framing needs header/body pairs"))
    return "".join(s + "\n" for s in segments)
