"""
Physical index helpers
======================

Every rebuild writes into a brand new index named ``<alias><microseconds>``
created from the shipped settings document; the alias is only moved onto it
once it is fully populated.
"""

import json
import logging
import time
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict

from app.clients.elastic import ElasticClient

SETTINGS_FILE = Path(__file__).resolve().parents[1] / "assets" / "search_index_settings.json"

log = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def _settings_text() -> str:
    return SETTINGS_FILE.read_text(encoding="utf-8")


def load_index_settings() -> Dict[str, Any]:
    """Fresh copy of the index settings/mappings body."""
    return json.loads(_settings_text())


def create_index_name(prefix: str) -> str:
    return f"{prefix}{time.time_ns() // 1000}"


def create_search_index(client: ElasticClient, prefix: str) -> str:
    name = create_index_name(prefix)
    client.create_index(name, load_index_settings())
    return name
