from dataclasses import dataclass
from typing import List, Optional, Tuple

PRE_TAG = '<em class="highlight">'
POST_TAG = "</em>"


@dataclass
class Match:
    start: int
    end: int
    value: Optional[str] = None

    def as_dict(self):
        d = {"start": self.start, "end": self.end}
        if self.value is not None:
            d["value"] = self.value
        return d


def find_matches(text: str, pre: str = PRE_TAG, post: str = POST_TAG) -> Tuple[str, List[Match]]:
    """
    Strip highlight tags from ``text`` and locate the highlighted runs.

    Returns the stripped text and one ``Match`` per highlighted run, with
    1-based, inclusive UTF-8 byte offsets into the stripped text:

        >>> find_matches('single <em class="highlight">value</em>')
        ('single value', [Match(start=8, end=12, value=None)])

    An opening tag with no closing tag ends the scan; the rest of the text is
    returned unchanged.
    """
    pieces: List[str] = []
    matches: List[Match] = []
    offset = 0  # bytes emitted so far
    pos = 0
    while True:
        s = text.find(pre, pos)
        if s < 0:
            break
        e = text.find(post, s + len(pre))
        if e < 0:
            break
        before = text[pos:s]
        inner = text[s + len(pre):e]
        offset += len(before.encode("utf-8"))
        start = offset + 1
        offset += len(inner.encode("utf-8"))
        matches.append(Match(start, offset))
        pieces.append(before)
        pieces.append(inner)
        pos = e + len(post)
    pieces.append(text[pos:])
    return "".join(pieces), matches


def strip_tags(text: str, pre: str = PRE_TAG, post: str = POST_TAG) -> str:
    return text.replace(pre, "").replace(post, "")
