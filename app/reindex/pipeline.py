"""
Reindex pipeline
================

Rebuilds the search index from the CMS and the datasets catalogue into a new
physical index, then moves the alias onto it and deletes superseded indices.

    CMS URIs ─▶ [uris] ─▶ extractors (N) ─▶ [extracted] ─┐
                                   └──────▶ [failures]   ├─▶ transformers ─▶ [transformed] ─▶ indexers (M) ─▶ [indexed]
    datasets ─▶ [datasets] ─▶ editions ─▶ [editions] ─▶ metadata ─▶ [metadata] ─┘

Each stage closes only its own outputs, after all of its workers returned.
Per-document failures are counted; failing to list the CMS URIs or datasets,
create the index, or flip the alias fails the run.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import List, Optional

from app.clients.bulk import BulkItem
from app.clients.cms import CMSClient
from app.clients.datasets import DatasetsClient
from app.clients.elastic import ElasticClient
from app.core.config import Settings
from app.core.errors import SearchAPIError
from app.lib.index_utils import create_search_index
from app.models.documents import Document
from app.reindex.aliases import clean_old_indices, swap_aliases
from app.reindex.channels import Cancelled, Channel, join_all, start_stage
from app.reindex.datasets import produce_datasets, retrieve_editions, retrieve_latest_metadata
from app.reindex.transform import TransformFailed, transform_metadata, transform_page

log = logging.getLogger(__name__)


@dataclass
class ReindexConfig:
    alias: str = "ons"
    max_extractions: int = 20
    max_indexings: int = 30
    pagination_limit: int = 500
    test_subset: bool = False
    ignore_zebedee: bool = False
    include_datasets: bool = True

    @classmethod
    def from_settings(cls, s: Settings) -> "ReindexConfig":
        return cls(
            alias=s.SEARCH_INDEX,
            max_extractions=s.MAX_CONCURRENT_EXTRACTIONS,
            max_indexings=s.MAX_CONCURRENT_INDEXINGS,
            pagination_limit=s.PAGINATION_LIMIT,
            test_subset=s.TEST_SUBSET,
            ignore_zebedee=s.IGNORE_ZEBEDEE,
        )


@dataclass
class Summary:
    index_name: str = ""
    indexed: int = 0
    failed: int = 0
    deleted: List[str] = field(default_factory=list)

    def __str__(self) -> str:
        return f"Indexed: {self.indexed}, Failed: {self.failed}"


class Reindexer:
    def __init__(
        self,
        es: ElasticClient,
        cms: Optional[CMSClient],
        datasets: Optional[DatasetsClient],
        config: Optional[ReindexConfig] = None,
    ):
        self.es = es
        self.cms = cms
        self.datasets = datasets
        self.config = config or ReindexConfig()
        self.cancel = threading.Event()
        self._errors: List[BaseException] = []
        self._errors_lock = threading.Lock()

    def _fatal(self, exc: BaseException) -> None:
        with self._errors_lock:
            self._errors.append(exc)
        self.cancel.set()

    def _channel(self, name: str) -> Channel:
        return Channel(self.cancel, maxsize=self.config.max_extractions, name=name)

    # ------------------------------ Run --------------------------------------

    def run(self) -> Summary:
        cfg = self.config
        summary = Summary(index_name=create_search_index(self.es, cfg.alias))
        log.info("index created: %s", summary.index_name)

        uris = self._channel("uris")
        extracted = self._channel("extracted")
        failures = self._channel("failures")
        transformed = self._channel("transformed")
        indexed = Channel(self.cancel, maxsize=cfg.max_indexings, name="indexed")
        datasets = self._channel("datasets")
        editions = self._channel("editions")
        metadata = self._channel("metadata")

        bulk = self.es.bulk_indexer()

        def finish_indexing() -> None:
            bulk.close()
            indexed.close()

        stages = [
            start_stage("uri-producer", 1, lambda: self.produce_uris(uris), uris.close, self._fatal),
            start_stage(
                "dataset-producer", 1, lambda: self.produce_datasets(datasets), datasets.close, self._fatal
            ),
            start_stage(
                "edition-retriever",
                cfg.max_extractions,
                lambda: self.retrieve_editions(datasets, editions),
                editions.close,
                self._fatal,
            ),
            start_stage(
                "metadata-retriever",
                cfg.max_extractions,
                lambda: self.retrieve_metadata(editions, metadata),
                metadata.close,
                self._fatal,
            ),
            start_stage(
                "extractor",
                cfg.max_extractions,
                lambda: self.extract_documents(uris, extracted, failures),
                extracted.close,
                self._fatal,
            ),
            start_stage(
                "transformer",
                cfg.max_extractions,
                lambda: self.transform_documents(extracted, metadata, transformed, failures),
                lambda: (transformed.close(), failures.close()),
                self._fatal,
            ),
            start_stage(
                "indexer",
                cfg.max_indexings,
                lambda: self.index_documents(bulk, summary.index_name, transformed, indexed),
                finish_indexing,
                self._fatal,
            ),
        ]

        try:
            self.summarise(indexed, failures, summary)
            join_all(stages)
        except KeyboardInterrupt:
            log.warning("reindex interrupted, cancelling")
            self.cancel.set()
            join_all(stages)
            raise

        log.info("%s", summary)
        if self._errors:
            log.error("reindex of %s failed, alias not moved", summary.index_name)
            raise self._errors[0]

        swap_aliases(self.es, cfg.alias, summary.index_name)
        summary.deleted = clean_old_indices(self.es, cfg.alias)
        return summary

    def summarise(self, indexed: Channel, failures: Channel, summary: Summary) -> None:
        """Drain both result channels concurrently so neither producer stalls."""
        failed = [0]

        def count_failures() -> None:
            for _ in failures:
                failed[0] += 1

        t = threading.Thread(target=count_failures, name="failure-counter", daemon=True)
        t.start()
        for ok in indexed:
            if ok:
                summary.indexed += 1
            else:
                summary.failed += 1
        t.join()
        summary.failed += failed[0]

    # ------------------------------ CMS flow ---------------------------------

    def produce_uris(self, out: Channel) -> None:
        if self.config.ignore_zebedee or self.cms is None:
            log.info("skipping CMS published index")
            return
        index = self.cms.get_published_index()
        log.info("fetched %d uris from the CMS", index.count)
        for item in index.items:
            out.send(item.uri)
        log.info("finished listing uris")

    def extract_documents(self, uris: Channel, out: Channel, failures: Channel) -> None:
        for uri in uris:
            try:
                body = self.cms.get_published_data(uri)
            except SearchAPIError as exc:
                log.warning("failed to extract %s: %s", uri, exc.cause or exc)
                failures.send(uri)
                continue
            out.send(Document(id="", uri=uri, body=body))

    # ---------------------------- Datasets flow ------------------------------

    def produce_datasets(self, out: Channel) -> None:
        if not self.config.include_datasets or self.datasets is None:
            return
        produce_datasets(self.datasets, out, self.config.pagination_limit, single_page=self.config.test_subset)

    def retrieve_editions(self, datasets: Channel, out: Channel) -> None:
        if self.datasets is not None:
            retrieve_editions(self.datasets, datasets, out)

    def retrieve_metadata(self, editions: Channel, out: Channel) -> None:
        if self.datasets is not None:
            retrieve_latest_metadata(self.datasets, editions, out)

    # --------------------------- Transform / index ---------------------------

    def transform_documents(
        self, extracted: Channel, metadata: Channel, out: Channel, failures: Channel
    ) -> None:
        for doc in extracted:
            try:
                out.send(transform_page(doc))
            except TransformFailed as exc:
                log.error("%s", exc)
                failures.send(doc.uri)
        for dm in metadata:
            try:
                out.send(transform_metadata(dm))
            except TransformFailed as exc:
                log.error("%s", exc)
                failures.send(exc.uri)

    def index_documents(self, bulk, index_name: str, transformed: Channel, indexed: Channel) -> None:
        def report(ok: bool) -> None:
            try:
                indexed.send(ok)
            except Cancelled:
                pass

        def on_success(item: BulkItem, result) -> None:
            report(True)

        def on_failure(item: BulkItem, result, error) -> None:
            log.error("failed to index document doc_id=%s response=%s error=%s", item.id, result, error)
            report(False)

        for doc in transformed:
            try:
                bulk.add("create", index_name, doc.id, doc.body, on_success, on_failure)
            except (RuntimeError, ValueError) as exc:
                log.error("failed to index document doc_id=%s: %s", doc.id, exc)
                indexed.send(False)
