"""
Dataset subflow workers
=======================

datasets -> editions -> latest version metadata. A failure fetching one
dataset's editions or one version's metadata is logged and that item is
skipped; failing to list datasets at all is fatal to the run.
"""

import logging

from app.clients.datasets import DatasetsClient
from app.core.errors import SearchAPIError
from app.models.datasets import DatasetMetadata, EditionRef
from app.reindex.channels import Channel

log = logging.getLogger(__name__)


def produce_datasets(client: DatasetsClient, out: Channel, page_size: int, single_page: bool = False) -> None:
    """Page through every dataset, or only the first page when ``single_page``."""
    offset = 0
    while True:
        page = client.get_datasets(offset=offset, limit=page_size)
        log.info(
            "got datasets batch count=%d total_count=%d offset=%d",
            page.count,
            page.total_count,
            page.offset,
        )
        for item in page.items:
            out.send(item)
        if single_page or not page.items:
            return
        offset += page_size
        if offset > page.total_count:
            return


def retrieve_editions(client: DatasetsClient, datasets: Channel, out: Channel) -> None:
    for dataset in datasets:
        current = dataset.current
        if current is None:
            continue
        try:
            editions = client.get_editions(current.id, current.collection_id)
        except SearchAPIError as exc:
            log.warning(
                "error retrieving editions dataset_id=%s collection_id=%s: %s",
                current.id,
                current.collection_id,
                exc.cause or exc,
            )
            continue
        for ed in editions:
            latest = ed.current.links.latest_version.id
            if not ed.id or not latest:
                continue
            out.send(
                EditionRef(
                    dataset_id=current.id,
                    edition=ed.current.edition,
                    version=latest,
                    collection_id=current.collection_id,
                    is_based_on=current.is_based_on,
                )
            )


def retrieve_latest_metadata(client: DatasetsClient, editions: Channel, out: Channel) -> None:
    for ref in editions:
        try:
            metadata = client.get_version_metadata(ref.dataset_id, ref.edition, ref.version, ref.collection_id)
        except SearchAPIError as exc:
            log.warning(
                "failed to retrieve dataset version metadata dataset_id=%s edition=%s version=%s: %s",
                ref.dataset_id,
                ref.edition,
                ref.version,
                exc.cause or exc,
            )
            continue
        out.send(DatasetMetadata(metadata=metadata, dataset_id=ref.dataset_id, is_based_on=ref.is_based_on))
