"""
Alias flip and index garbage collection
=======================================

The alias is moved with one ``_aliases`` call (remove from every
``<alias>*`` index, add to the new one), so some index always holds it.
Afterwards every ``<alias>*`` index that no longer holds the alias is
deleted; an index that still holds it never is.
"""

import logging
from typing import Any, Dict, List

from app.clients.elastic import ElasticClient

log = logging.getLogger(__name__)


def swap_aliases(client: ElasticClient, alias: str, new_index: str) -> None:
    client.update_aliases(alias, [f"{alias}*"], [new_index])
    log.info("alias %s now points at %s", alias, new_index)


def has_alias(details: Dict[str, Any], alias: str) -> bool:
    return alias in ((details or {}).get("aliases") or {})


def stale_indices(aliases: Dict[str, Any], alias: str) -> List[str]:
    return sorted(
        index
        for index, details in aliases.items()
        if index.startswith(alias) and not has_alias(details, alias)
    )


def clean_old_indices(client: ElasticClient, alias: str) -> List[str]:
    """Delete superseded indices; returns the names deleted."""
    to_delete = stale_indices(client.get_alias(), alias)
    if to_delete:
        client.delete_indices(to_delete)
        log.info("deleted indices: %s", ",".join(to_delete))
    return to_delete
