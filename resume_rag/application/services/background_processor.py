"""Background Processor — asyncio worker pool draining the ingestion job queue."""

import asyncio
import logging
from datetime import datetime, timedelta, timezone

from resume_rag.application.interfaces.ingestion_job_repository import IngestionJobRepository
from resume_rag.application.services.ingestion_service import IngestionService
from resume_rag.domain.entities import IngestionJob
from resume_rag.domain.exceptions import ResumeRagError

logger = logging.getLogger(__name__)

# Polling interval in seconds
POLL_INTERVAL = 5.0


def is_retryable(exc: Exception) -> bool:
    """Pipeline errors carry their own verdict; anything unexpected is retried."""
    if isinstance(exc, ResumeRagError):
        return exc.retryable
    return True


class BackgroundProcessor:
    """Asyncio daemon that polls the ingestion_jobs table and executes queued work.

    Runs as an asyncio.Task inside FastAPI's lifespan. Up to ``concurrency``
    jobs run at once; each claimed job is exclusively owned by one worker, so
    a document never has two pipelines running. Failed jobs are retried with
    exponential backoff until their attempts are exhausted.
    """

    def __init__(
        self,
        jobs: IngestionJobRepository,
        ingestion: IngestionService,
        *,
        concurrency: int = 4,
        poll_interval: float = POLL_INTERVAL,
        backoff_seconds: float = 2.0,
        stale_after_seconds: float = 900,
    ) -> None:
        self._jobs = jobs
        self._ingestion = ingestion
        self._concurrency = max(concurrency, 1)
        self._poll_interval = poll_interval
        self._backoff_seconds = backoff_seconds
        self._stale_after = timedelta(seconds=stale_after_seconds)
        self._running = False
        self._task: asyncio.Task | None = None
        self._in_flight: set[asyncio.Task] = set()

    async def start(self) -> None:
        """Start the background processing loop."""
        self._running = True
        self._task = asyncio.create_task(self._loop())
        logger.info("BackgroundProcessor started (concurrency=%d)", self._concurrency)

    async def stop(self) -> None:
        """Stop polling and wait for in-flight jobs to finish their current attempt."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        if self._in_flight:
            await asyncio.gather(*self._in_flight, return_exceptions=True)
        logger.info("BackgroundProcessor stopped")

    async def _loop(self) -> None:
        """Main polling loop — claims due jobs into free worker slots."""
        while self._running:
            claimed = 0
            try:
                claimed = await self._claim_and_dispatch()
            except asyncio.CancelledError:
                break
            except Exception:
                logger.exception("BackgroundProcessor polling error")

            if not claimed:
                await asyncio.sleep(self._poll_interval)
            else:
                # Yield so dispatched jobs make progress before the next claim
                await asyncio.sleep(0)

    async def _claim_and_dispatch(self) -> int:
        free_slots = self._concurrency - len(self._in_flight)
        if free_slots <= 0:
            return 0

        jobs = await self._claim(free_slots)
        for job in jobs:
            task = asyncio.create_task(self.process_job(job))
            self._in_flight.add(task)
            task.add_done_callback(self._in_flight.discard)
        return len(jobs)

    async def _claim(self, limit: int) -> list[IngestionJob]:
        now = datetime.now(timezone.utc)
        return await self._jobs.claim_due(limit, now, now - self._stale_after)

    async def run_until_idle(self) -> int:
        """Process due jobs inline until none are left. Returns jobs processed.

        Jobs rescheduled with a future retry time are not waited for.
        """
        processed = 0
        while True:
            jobs = await self._claim(self._concurrency)
            if not jobs:
                return processed
            await asyncio.gather(*(self.process_job(job) for job in jobs))
            processed += len(jobs)

    async def process_job(self, job: IngestionJob) -> None:
        """Run one attempt of a claimed job and record its outcome.

        Never raises: failures are written to the document and the job.
        """
        logger.info(
            "Processing job %s for document %s (attempt %d/%d)",
            job.id,
            job.document_id,
            job.attempts,
            job.max_attempts,
        )
        try:
            await self._run_with_heartbeat(job)
        except Exception as exc:
            error = str(exc) or type(exc).__name__
            terminal = not is_retryable(exc) or job.attempts_exhausted
            logger.exception("Job %s failed: %s", job.id, error)

            try:
                await self._ingestion.record_failure(job.document_id, error, terminal=terminal)
                if terminal:
                    job.mark_failed(error)
                    self._ingestion.release_staged_file(job)
                    logger.error(
                        "Job %s abandoned after %d attempt(s)", job.id, job.attempts
                    )
                else:
                    delay = self._backoff_seconds * 2 ** (job.attempts - 1)
                    job.mark_retry(error, delay)
                    logger.info("Job %s will retry in %.1fs", job.id, delay)
                await self._jobs.update(job)
            except Exception:
                logger.exception("Could not record failure of job %s", job.id)
            return

        job.mark_completed()
        try:
            await self._jobs.update(job)
        except Exception:
            # Left in PROCESSING; reclaimed once stale, and the replay is idempotent
            logger.exception("Could not mark job %s completed", job.id)
            return
        logger.info("Job %s completed for document %s", job.id, job.document_id)

    async def _run_with_heartbeat(self, job: IngestionJob) -> None:
        heartbeat = asyncio.create_task(self._heartbeat(job))
        try:
            await self._ingestion.process(job)
        finally:
            heartbeat.cancel()
            try:
                await heartbeat
            except asyncio.CancelledError:
                pass

    async def _heartbeat(self, job: IngestionJob) -> None:
        """Keep refreshing the claim so a slow attempt is never taken for a stale one."""
        interval = self._stale_after.total_seconds() / 3
        while True:
            await asyncio.sleep(interval)
            job.started_at = datetime.now(timezone.utc)
            try:
                await self._jobs.update(job)
            except Exception:
                logger.exception("Could not refresh claim on job %s", job.id)
