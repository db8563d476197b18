"""
Rebuild the search index from the CMS and the datasets catalogue.

    python -m scripts.reindex --test-subset
"""

import argparse
import logging
import sys

from app.clients.cms import CMSClient
from app.clients.datasets import DatasetsClient
from app.core.config import settings
from app.reindex.pipeline import ReindexConfig, Reindexer
from app.services.es import build_es

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
log = logging.getLogger("reindex")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Rebuild the search index and move the alias onto it")
    parser.add_argument("--zebedee-url", default=settings.ZEBEDEE_URL, help="CMS base URL")
    parser.add_argument("--dataset-url", default=settings.DATASET_API_URL, help="Datasets catalogue base URL")
    parser.add_argument(
        "--pagination-limit",
        type=int,
        default=settings.PAGINATION_LIMIT,
        help=f"Datasets page size (default: {settings.PAGINATION_LIMIT})",
    )
    parser.add_argument(
        "--test-subset",
        action="store_true",
        default=settings.TEST_SUBSET,
        help="Only fetch the first page of datasets",
    )
    parser.add_argument(
        "--ignore-zebedee",
        action="store_true",
        default=settings.IGNORE_ZEBEDEE,
        help="Skip the CMS published index",
    )
    args = parser.parse_args(argv)

    config = ReindexConfig.from_settings(settings)
    config.pagination_limit = args.pagination_limit
    config.test_subset = args.test_subset
    config.ignore_zebedee = args.ignore_zebedee

    log.info(
        "running reindex zebedee=%s datasets=%s es=%s config=%s",
        args.zebedee_url,
        args.dataset_url,
        settings.ES_HOST,
        config,
    )

    reindexer = Reindexer(
        build_es(),
        None if args.ignore_zebedee else CMSClient(args.zebedee_url),
        DatasetsClient(args.dataset_url, settings.SERVICE_AUTH_TOKEN),
        config,
    )
    try:
        summary = reindexer.run()
    except KeyboardInterrupt:
        log.warning("reindex cancelled")
        return 130
    except Exception:
        log.exception("reindex failed")
        return 1

    print(summary)
    if summary.deleted:
        print(f"Deleted Indices: {','.join(summary.deleted)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
