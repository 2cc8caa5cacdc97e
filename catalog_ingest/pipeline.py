"""Fetch, normalize and persist a run of Google Books results."""
import asyncio
import threading
import logging
from typing import Any, Dict, List, Optional

from catalog_ingest.config import PAGE_SIZE
from catalog_ingest.errors import PipelineCancelled, SourceApiError, StoreWriteError
from catalog_ingest.models import CatalogRecord, IngestResult, PipelineState
from catalog_ingest.parse import normalize_books
from catalog_ingest.rate_limiter import RateGovernor

logger = logging.getLogger(__name__)


class IngestPipeline:
    """
    Drives one ingestion run.

    Pages are fetched one at a time, normalized, and accumulated until the
    source runs dry or the target count is reached. The whole batch is then
    written with a single upsert. A source failure aborts the run before
    anything is written.
    """

    def __init__(
        self,
        client,
        store,
        governor: Optional[RateGovernor] = None,
        page_size: int = PAGE_SIZE,
        cancel_event: Optional[threading.Event] = None
    ):
        """
        Args:
            client: Object with fetch_page(query, offset) (sync or async)
            store: Object with upsert_books(records) -> WriteResult
            governor: Pacing between page fetches
            page_size: Offset step between pages
            cancel_event: Set from outside to stop the run
        """
        self._client = client
        self._store = store
        self._governor = governor or RateGovernor()
        self._page_size = page_size
        self._cancel_event = cancel_event or threading.Event()

    def cancel(self):
        """Ask the run to stop at the next checkpoint."""
        self._cancel_event.set()

    def run(self, query: str, target: int) -> IngestResult:
        """
        Run the pipeline with the blocking client.

        Args:
            query: Google Books search text
            target: Stop fetching once this many valid records are collected

        Returns:
            IngestResult summarizing the run

        Raises:
            SourceApiError: a page fetch failed; nothing was written
            StoreWriteError: the batch write failed
            PipelineCancelled: cancellation was requested
        """
        result, batch = self._start(query, target)
        offset = 0

        try:
            while True:
                self._check_cancelled(result)
                self._begin_fetch(result, offset)
                page = self._client.fetch_page(query, offset)
                if self._absorb(result, batch, page, offset, target):
                    break
                self._governor.wait()
                offset += self._page_size

            self._check_cancelled(result)
            return self._persist(result, batch)
        except Exception as e:
            self._fail(result, e)
            raise

    async def run_async(self, query: str, target: int) -> IngestResult:
        """Same as run(), for an async client. The store write runs in a worker thread."""
        result, batch = self._start(query, target)
        offset = 0

        try:
            while True:
                self._check_cancelled(result)
                self._begin_fetch(result, offset)
                page = await self._client.fetch_page(query, offset)
                if self._absorb(result, batch, page, offset, target):
                    break
                await self._governor.wait_async()
                offset += self._page_size

            self._check_cancelled(result)
            return await asyncio.to_thread(self._persist, result, batch)
        except Exception as e:
            self._fail(result, e)
            raise

    def _start(self, query: str, target: int):
        if target < 1:
            raise ValueError(f"target must be at least 1, got {target}")

        logger.info(f'Starting ingest of {target} books for term: "{query}"')
        return IngestResult(query=query, target=target), []

    def _enter(self, result: IngestResult, state: PipelineState):
        result.final_state = state
        result.transitions.append(state)

    def _begin_fetch(self, result: IngestResult, offset: int):
        self._enter(result, PipelineState.FETCHING)
        logger.info(f"Fetching page {result.pages_fetched + 1} (startIndex: {offset})...")

    def _absorb(
        self,
        result: IngestResult,
        batch: List[CatalogRecord],
        page: List[Dict[str, Any]],
        offset: int,
        target: int
    ) -> bool:
        """Fold one fetched page into the batch. Returns True when fetching should stop."""
        if not page:
            self._enter(result, PipelineState.EXHAUSTED)
            logger.info("No more books found from Google. Stopping.")
            return True

        self._enter(result, PipelineState.NORMALIZING)
        result.pages_fetched += 1
        records = normalize_books(page)
        result.raw_records += len(page)
        result.valid_records += len(records)
        batch.extend(records)

        dropped = len(page) - len(records)
        logger.info(
            f"Page {result.pages_fetched} (startIndex: {offset}): {len(page)} fetched, "
            f"{len(records)} valid, {dropped} skipped, {len(batch)} accumulated"
        )

        if len(batch) >= target:
            self._enter(result, PipelineState.TARGET_REACHED)
            logger.info(f"Reached target of {target} books")
            return True

        self._enter(result, PipelineState.RATE_LIMITING)
        return False

    def _persist(self, result: IngestResult, batch: List[CatalogRecord]) -> IngestResult:
        self._enter(result, PipelineState.PERSISTING)
        if batch:
            logger.info(f"Fetched {len(batch)} valid books. Now inserting into the catalog...")
        else:
            logger.warning("No valid books found for this query; nothing to insert")

        result.write_result = self._store.upsert_books(batch)

        self._enter(result, PipelineState.DONE)
        logger.info(
            f"Successfully processed {len(batch)} books: "
            f"{result.write_result.records_accepted} written, "
            f"{result.write_result.records_ignored} already present"
        )
        return result

    def _check_cancelled(self, result: IngestResult):
        if self._cancel_event.is_set():
            self._enter(result, PipelineState.CANCELLED)
            raise PipelineCancelled(
                f"Ingest cancelled after {result.pages_fetched} pages; nothing was written"
            )

    def _fail(self, result: IngestResult, error: Exception):
        if isinstance(error, PipelineCancelled):
            logger.warning(str(error))
            return

        self._enter(result, PipelineState.FAILED)
        if isinstance(error, SourceApiError):
            logger.error(
                f"Source fetch failed after {result.pages_fetched} pages; "
                f"discarding {result.valid_records} accumulated books: {error}"
            )
        elif isinstance(error, StoreWriteError):
            logger.error(f"Batch write failed; no books were stored: {error}")
        else:
            logger.error(f"Ingest failed: {error}")
