"""Debounced background saving of in-progress answers.

Edits are buffered per question. Each edit restarts the debounce window; when
it elapses every buffered answer is sent concurrently, one ``record_answer``
call per question. Failed answers stay buffered and go out again with the next
flush.
"""
import asyncio
import enum
import logging

from django.conf import settings

logger = logging.getLogger(__name__)


class SaveStatus(str, enum.Enum):
    IDLE = "idle"
    SAVING = "saving"
    SAVED = "saved"
    ERROR = "error"


class AutosaveCoordinator:
    def __init__(self, gateway, attempt_id, delay=None, on_status=None):
        self.gateway = gateway
        self.attempt_id = attempt_id
        self.delay = settings.ASSESSMENTS_AUTOSAVE_DELAY_SECONDS if delay is None else delay
        self.on_status = on_status
        self.status = SaveStatus.IDLE
        self.last_error = None
        self._buffer = {}
        self._debounce = None
        self._flush_lock = asyncio.Lock()

    @property
    def pending(self):
        """Answers not yet confirmed by the server."""
        return dict(self._buffer)

    def edit(self, question_id, text):
        """Buffer an edit and restart the debounce window. Needs a running event loop."""
        self._buffer[question_id] = text
        self._set_status(SaveStatus.IDLE)
        self.cancel()
        self._debounce = asyncio.get_running_loop().create_task(self._flush_after_delay())

    def cancel(self):
        """Drop the pending debounce. A flush already in flight is left alone."""
        if self._debounce is not None and not self._debounce.done():
            self._debounce.cancel()
        self._debounce = None

    async def wait(self):
        """Wait until no debounce is pending, following any that replace it."""
        while self._debounce is not None:
            task = self._debounce
            try:
                await task
            except asyncio.CancelledError:
                if not task.cancelled():
                    raise
            if self._debounce is task:
                self._debounce = None

    async def flush(self, raise_errors=True):
        async with self._flush_lock:
            batch = dict(self._buffer)
            if not batch:
                return
            self._set_status(SaveStatus.SAVING)

            results = await asyncio.gather(
                *(self.gateway.record_answer(self.attempt_id, question_id, text) for question_id, text in batch.items()),
                return_exceptions=True,
            )

            failures = []
            for (question_id, text), result in zip(batch.items(), results):
                if isinstance(result, BaseException):
                    failures.append((question_id, result))
                elif self._buffer.get(question_id) == text:
                    # Unchanged since the snapshot
                    del self._buffer[question_id]

            if failures:
                question_id, error = failures[0]
                self.last_error = error
                self._set_status(SaveStatus.ERROR)
                logger.warning(
                    "Autosave failed for %d of %d answer(s) on attempt %s (question %s: %s)",
                    len(failures), len(batch), self.attempt_id, question_id, error,
                )
                if raise_errors:
                    raise error
                return

            self.last_error = None
            self._set_status(SaveStatus.SAVED if not self._buffer else SaveStatus.IDLE)

    async def flush_before_submit(self):
        """Cancel the debounce and push everything buffered, raising on failure."""
        self.cancel()
        await self.flush(raise_errors=True)

    async def _flush_after_delay(self):
        await asyncio.sleep(self.delay)
        # Detach first so an edit during the flush does not cancel it.
        self._debounce = None
        # Failures are kept in the buffer and reported through the status.
        await self.flush(raise_errors=False)

    def _set_status(self, status):
        self.status = status
        if self.on_status:
            self.on_status(status)
