"""Single-body lookups: documents by URI/type, and the latest timeseries for a CDID."""

import json
from typing import Any, Dict, Optional, Sequence

from jinja2 import Environment, TemplateError

from app.core.errors import CompileError
from app.query.templating import build_environment, load_templates

DATA_TEMPLATE = "data/queryByUri.j2"
TIMESERIES_TEMPLATE = "timeseries/lookup.j2"


class LookupBuilder:
    def __init__(self, env: Optional[Environment] = None):
        env = env or build_environment()
        self._templates = load_templates(env, (DATA_TEMPLATE, TIMESERIES_TEMPLATE))

    def _render(self, name: str, **ctx: Any) -> Dict[str, Any]:
        try:
            return json.loads(self._templates[name].render(**ctx))
        except (TemplateError, TypeError, ValueError) as exc:
            raise CompileError(exc) from exc

    def build_data_query(self, uris: Sequence[str], types: Sequence[str] = ()) -> Dict[str, Any]:
        return self._render(DATA_TEMPLATE, uris=list(uris), types=list(types))

    def build_timeseries_query(self, cdid: str) -> Dict[str, Any]:
        return self._render(TIMESERIES_TEMPLATE, cdid=cdid)
