"""
Query template bundle
=====================

The Elasticsearch query DSL lives in ``app/templates`` as Jinja2 files and is
shipped with the package. Templates are loaded and compiled once; a missing or
broken template stops the process at import time rather than at the first
request.
"""

import json
import logging
from pathlib import Path
from typing import Dict, Iterable

from jinja2 import Environment, FileSystemLoader, StrictUndefined, Template, TemplateError

TEMPLATE_DIR = Path(__file__).resolve().parents[1] / "templates"

log = logging.getLogger("uvicorn.error")


def _tojson(value) -> str:
    # jinja's builtin tojson HTML-escapes <, >, & and '; query text must go through untouched.
    # "$" is escaped so user text can never contain the "$$" segment separator.
    return json.dumps(value, ensure_ascii=False).replace("$", "\\u0024")


def build_environment(template_dir: Path = TEMPLATE_DIR) -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(template_dir)),
        autoescape=False,
        undefined=StrictUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["tojson"] = _tojson
    return env


def load_templates(env: Environment, names: Iterable[str]) -> Dict[str, Template]:
    compiled: Dict[str, Template] = {}
    for name in names:
        try:
            compiled[name] = env.get_template(name)
        except TemplateError:
            log.critical("failed to load query template %s", name)
            raise
    return compiled
