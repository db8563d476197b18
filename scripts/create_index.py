"""
Create an empty search index from the shipped settings and optionally point
the alias at it.

    python -m scripts.create_index --swap
"""

import argparse
import logging
import sys

from app.core.config import settings
from app.core.errors import SearchAPIError
from app.lib.index_utils import create_search_index
from app.reindex.aliases import swap_aliases
from app.services.es import build_es

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
log = logging.getLogger("create-index")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Create a new physical search index")
    parser.add_argument("--alias", default=settings.SEARCH_INDEX, help="Alias / index name prefix")
    parser.add_argument("--swap", action="store_true", help="Move the alias onto the new index")
    args = parser.parse_args(argv)

    client = build_es()
    try:
        name = create_search_index(client, args.alias)
        if args.swap:
            swap_aliases(client, args.alias, name)
    except SearchAPIError as exc:
        log.error("%s: %s", exc.message, exc.cause)
        return 1

    print(name)
    return 0


if __name__ == "__main__":
    sys.exit(main())
