"""
Content search query builder
============================

``SearchRequest`` is the request-shaped structure the ``search/*.j2``
templates render against. The root template emits one ``header$$body$$``
pair per requested sub-query, always in the order

    content, counts, featured, departments, topics, population_types, dimensions

so the transformer can rely on the position of each sub-response.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

from jinja2 import Environment, TemplateError

from app.core.errors import CompileError
from app.query.formatting import format_multi_query
from app.query.params import Date, SearchSort
from app.query.templating import build_environment, load_templates

DEFAULT_INDEX = "ons"

DEFAULT_CONTENT_TYPES = [
    "article",
    "article_download",
    "bulletin",
    "compendium_landing_page",
    "dataset_landing_page",
    "product_page",
    "static_adhoc",
    "static_article",
    "static_foi",
    "static_landing_page",
    "static_methodology",
    "static_methodology_download",
    "static_page",
    "static_qmi",
    "timeseries",
    "timeseries_dataset",
    "cantabular_flexible_table",
    "cantabular_multivariate_table",
]

SUB_QUERIES = (
    "content",
    "counts",
    "featured",
    "departments",
    "topics",
    "population_types",
    "dimensions",
)
DEFAULT_QUERIES = ["content", "counts"]

# fields the counts sub-query may aggregate on; "_type" is the legacy spelling of "type"
AGGREGATION_FIELDS = ("type", "_type", "topics")

ROOT_TEMPLATE = "search/search.j2"
SEARCH_TEMPLATES = (
    ROOT_TEMPLATE,
    "search/macros.j2",
    "search/sortByRelevance.j2",
    "search/sortByTitle.j2",
    "search/sortByReleaseDate.j2",
    "search/sortByReleaseDateAsc.j2",
    "search/sortByFirstLetter.j2",
)


def utc_now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


@dataclass
class SearchRequest:
    term: str = ""
    from_: int = 0
    size: int = 10
    types: List[str] = field(default_factory=lambda: list(DEFAULT_CONTENT_TYPES))
    queries: List[str] = field(default_factory=lambda: list(DEFAULT_QUERIES))
    sort: SearchSort = SearchSort.RELEVANCE
    aggregation_field: str = "type"
    highlight: bool = True
    filter_on_latest: bool = False
    first_letter: str = ""
    released_after: Date = field(default_factory=Date)
    released_before: Date = field(default_factory=Date)
    uri_prefix: str = ""
    topics: List[str] = field(default_factory=list)
    topic_wildcards: List[str] = field(default_factory=list)
    upcoming: bool = False
    published: bool = False
    now: str = field(default_factory=utc_now)
    index: str = DEFAULT_INDEX

    def has_query(self, name: str) -> bool:
        return name in self.queries

    @property
    def es_aggregation_field(self) -> str:
        return "type" if self.aggregation_field == "_type" else self.aggregation_field

    @property
    def has_date_range(self) -> bool:
        return self.released_after.is_set() or self.released_before.is_set()


class SearchBuilder:
    """Renders a ``SearchRequest`` into a multi-search request body."""

    def __init__(self, env: Optional[Environment] = None):
        env = env or build_environment()
        self._templates = load_templates(env, SEARCH_TEMPLATES)
        self._root = self._templates[ROOT_TEMPLATE]

    def build(self, req: SearchRequest) -> str:
        try:
            rendered = self._root.render(req=req)
        except (TemplateError, TypeError, ValueError) as exc:
            raise CompileError(exc) from exc
        return format_multi_query(rendered)
