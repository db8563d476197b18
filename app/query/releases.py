"""
Release calendar query builder
==============================

Release search sends two queries in one multi-search: the main query (hits,
plus the upcoming sub-type and census breakdowns) and a size-0 counts query
for the published/cancelled/upcoming totals. The builder returns them as
``Search`` values; ``ElasticClient.multi_search`` does the line framing.
"""

import json
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

from jinja2 import Environment, TemplateError

from app.clients.elastic import Search
from app.core.errors import CompileError
from app.query.formatting import split_segments
from app.query.params import Date, ReleaseSort, ReleaseType
from app.query.templating import build_environment, load_templates

ROOT_TEMPLATE = "releasecalendar/search.j2"
RELEASE_TEMPLATES = (ROOT_TEMPLATE, "releasecalendar/query.j2")

EMPTY_CLAUSE = '{"match_all": {}}'

NOT_PROVISIONAL_NOT_CONFIRMED_POSTPONED = (
    '{"term": {"finalised": true}}, {"exists": {"field": "date_changes"}}'
)
NOT_PROVISIONAL_CONFIRMED_NOT_POSTPONED = (
    '{"term": {"finalised": true}}, '
    '{"bool": {"must_not": {"exists": {"field": "date_changes"}}}}'
)
NOT_PROVISIONAL_CONFIRMED_POSTPONED = '{"term": {"finalised": true}}'
PROVISIONAL_NOT_CONFIRMED_NOT_POSTPONED = '{"term": {"finalised": false}}'
PROVISIONAL_NOT_CONFIRMED_POSTPONED = """
{"bool": {"should": [
  {"term": {"finalised": false}},
  {"bool": {"must": [{"term": {"finalised": true}}, {"exists": {"field": "date_changes"}}]}}
]}}"""
PROVISIONAL_CONFIRMED_NOT_POSTPONED = """
{"bool": {"should": [
  {"term": {"finalised": false}},
  {"bool": {"must": [
    {"term": {"finalised": true}},
    {"bool": {"must_not": {"exists": {"field": "date_changes"}}}}
  ]}}
]}}"""

HIGHLIGHT_CLAUSE = """
"highlight": {
  "pre_tags": ["<em class=\\"ons-highlight\\">"],
  "post_tags": ["</em>"],
  "fields": {
    "title": {"fragment_size": 0, "number_of_fragments": 0},
    "summary": {"fragment_size": 0, "number_of_fragments": 0},
    "keywords": {"fragment_size": 0, "number_of_fragments": 0}
  }
}"""


def _today() -> Date:
    return Date(date.today())


@dataclass
class ReleaseSearchRequest:
    index: str = "ons"
    term: str = ""
    from_: int = 0
    size: int = 10
    sort: ReleaseSort = ReleaseSort.RELEASE_DATE_ASC
    released_after: Date = field(default_factory=Date)
    released_before: Date = field(default_factory=Date)
    type: ReleaseType = ReleaseType.PUBLISHED
    provisional: bool = False
    confirmed: bool = False
    postponed: bool = False
    census: bool = False
    highlight: bool = True
    now: Date = field(default_factory=_today)

    def now_string(self) -> str:
        return self.now.es_string()

    def sort_clause(self) -> str:
        if self.sort is ReleaseSort.RELEVANCE:
            relevance = ReleaseSort.RELEVANCE.es_string()
            if self.type is ReleaseType.UPCOMING:
                return f"{relevance}, {ReleaseSort.RELEASE_DATE_ASC.es_string()}"
            if self.type is ReleaseType.PUBLISHED:
                return f"{relevance}, {ReleaseSort.RELEASE_DATE_DESC.es_string()}"
            return relevance
        return self.sort.es_string()

    def release_type_clause(self) -> str:
        """
        Filter clause(s) selecting the requested release type.

        A release can be flagged both published and cancelled; it is then
        treated as cancelled.
        """
        if self.type is ReleaseType.UPCOMING:
            clause = (
                '{"term": {"published": false}}, {"term": {"cancelled": false}}, '
                f'{{"range": {{"release_date": {{"gte": {self.now_string()}}}}}}}'
            )
            secondary = self.supplementary_upcoming_clause()
            return f"{clause}, {secondary}" if secondary else clause
        if self.type is ReleaseType.PUBLISHED:
            return '{"term": {"published": true}}, {"term": {"cancelled": false}}'
        return '{"term": {"cancelled": true}}'

    def supplementary_upcoming_clause(self) -> str:
        flags = (self.provisional, self.confirmed, self.postponed)
        return {
            (False, False, True): NOT_PROVISIONAL_NOT_CONFIRMED_POSTPONED,
            (False, True, False): NOT_PROVISIONAL_CONFIRMED_NOT_POSTPONED,
            (False, True, True): NOT_PROVISIONAL_CONFIRMED_POSTPONED,
            (True, False, False): PROVISIONAL_NOT_CONFIRMED_NOT_POSTPONED,
            (True, False, True): PROVISIONAL_NOT_CONFIRMED_POSTPONED,
            (True, True, False): PROVISIONAL_CONFIRMED_NOT_POSTPONED,
        }.get(flags, "")

    def census_clause(self) -> str:
        if self.census:
            return '{"term": {"survey": "census"}}'
        return EMPTY_CLAUSE

    def highlight_clause(self) -> str:
        return HIGHLIGHT_CLAUSE if self.highlight else ""


class ReleaseBuilder:
    def __init__(self, env: Optional[Environment] = None):
        env = env or build_environment()
        self._templates = load_templates(env, RELEASE_TEMPLATES)
        self._root = self._templates[ROOT_TEMPLATE]

    def build(self, req: ReleaseSearchRequest) -> List[Search]:
        try:
            rendered = self._root.render(req=req)
        except (TemplateError, TypeError, ValueError) as exc:
            raise CompileError(exc, kind="search release") from exc

        try:
            segments = split_segments(rendered)
        except CompileError as exc:
            raise CompileError(exc.cause, kind="search release") from exc

        return [
            Search(header=json.loads(segments[i]), body=segments[i + 1])
            for i in range(0, len(segments) - 1, 2)
        ]
