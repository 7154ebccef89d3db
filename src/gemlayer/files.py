"""Gemini File API lifecycle: upload, poll until ACTIVE, clean up.

Implements the upload pattern for large media:
  1. ``client.aio.files.upload()`` -- the server assigns a resource name
  2. Poll ``client.aio.files.get()`` on a fixed cadence until the file is
     ACTIVE, bounded by an absolute timeout from poll-loop entry
  3. On any failure after step 1 (server FAILED, status error, timeout,
     caller cancellation) delete the file in a detached background task

The background delete runs on its own short timeout, outside the caller's
cancellation scope, so a cancelled caller still gets its upload cleaned up.
Cleanup failures are logged and never raised.
"""

from __future__ import annotations

import asyncio
import io
import logging

from google import genai
from google.genai import types as genai_types

from gemlayer.config import require_positive
from gemlayer.constants import (
    CLEANUP_TIMEOUT_SECONDS,
    POLL_INTERVAL_SECONDS,
    POLL_TIMEOUT_SECONDS,
)
from gemlayer.errors import (
    FileDeleteError,
    FilePollTimeoutError,
    FileProcessingError,
    FileStatusError,
    FileUploadError,
    UploadCancelledError,
    ValidationError,
)
from gemlayer.fsm import create_fsm
from gemlayer.models import FileState, UploadedFile

logger = logging.getLogger(__name__)


class FileLifecycleManager:
    """Owns the upload -> poll -> ready/fail -> cleanup protocol.

    Each upload gets its own :class:`~gemlayer.fsm.FileLifecycleSM`; the only
    state shared between uploads is the set of pending cleanup tasks, which
    is kept so the tasks are not garbage collected mid-flight.

    Usage::

        manager = FileLifecycleManager(genai.Client(api_key="..."))
        uploaded = await manager.upload(data, "video/mp4", "clip.mp4")
        try:
            ...  # use uploaded.uri in a generation request
        finally:
            await manager.delete(uploaded)
    """

    def __init__(
        self,
        client: genai.Client,
        poll_interval: float = POLL_INTERVAL_SECONDS,
        poll_timeout: float = POLL_TIMEOUT_SECONDS,
        cleanup_timeout: float = CLEANUP_TIMEOUT_SECONDS,
    ) -> None:
        require_positive("poll_interval", poll_interval)
        require_positive("poll_timeout", poll_timeout)
        require_positive("cleanup_timeout", cleanup_timeout)
        self._client = client
        self._poll_interval = poll_interval
        self._poll_timeout = poll_timeout
        self._cleanup_timeout = cleanup_timeout
        self._cleanup_tasks: set[asyncio.Task[None]] = set()

    @property
    def pending_cleanups(self) -> int:
        return len(self._cleanup_tasks)

    # ------------------------------------------------------------------
    # Upload
    # ------------------------------------------------------------------

    async def upload(
        self,
        data: bytes,
        mime_type: str,
        display_name: str = "",
        cancel_event: asyncio.Event | None = None,
    ) -> UploadedFile:
        """Upload *data* and wait until the server reports it ACTIVE.

        Args:
            data: Raw file bytes.
            mime_type: MIME type of *data* (required for in-memory uploads).
            display_name: Optional human-readable name.
            cancel_event: Optional cooperative cancellation signal, checked
                between status polls.

        Returns:
            The ACTIVE :class:`UploadedFile`; the caller deletes it when done.

        Raises:
            ValidationError: Empty data or missing MIME type.
            FileUploadError: The upload call failed (nothing to clean up).
            FileProcessingError: The server marked the file FAILED.
            FileStatusError: A status poll failed.
            FilePollTimeoutError: The file did not become ACTIVE in time.
            UploadCancelledError: *cancel_event* was set while polling.
        """
        if not data:
            raise ValidationError("cannot upload empty data")
        if not mime_type:
            raise ValidationError("mime_type is required")

        lifecycle = create_fsm()
        upload_config = genai_types.UploadFileConfig(
            mime_type=mime_type,
            display_name=display_name or None,
        )
        try:
            file_obj = await self._client.aio.files.upload(
                file=io.BytesIO(data), config=upload_config
            )
        except Exception as exc:
            raise FileUploadError(f"file upload failed: {exc}") from exc

        uploaded = UploadedFile(
            name=file_obj.name,
            display_name=display_name,
            mime_type=mime_type,
            state=FileState.from_remote(getattr(file_obj, "state", None)),
            lifecycle=lifecycle,
        )
        logger.info("Uploaded %d bytes (%s) -> %s", len(data), mime_type, uploaded.name)

        lifecycle.start_polling()
        try:
            uploaded.uri = await self._poll_until_active(uploaded, cancel_event)
        except (Exception, asyncio.CancelledError) as exc:
            self._record_failure(uploaded, exc)
            self.schedule_cleanup(uploaded)
            raise

        lifecycle.activate()
        return uploaded

    @staticmethod
    def _record_failure(uploaded: UploadedFile, exc: BaseException) -> None:
        lifecycle = uploaded.lifecycle
        if isinstance(exc, (asyncio.CancelledError, UploadCancelledError)):
            lifecycle.abort()
        elif isinstance(exc, FilePollTimeoutError):
            lifecycle.time_out()
        else:
            lifecycle.fail()
        logger.debug(
            "File %s left polling as %s: %s",
            uploaded.name,
            lifecycle.current_state_value,
            exc,
        )

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------

    async def _poll_until_active(
        self, uploaded: UploadedFile, cancel_event: asyncio.Event | None
    ) -> str:
        """Poll on a fixed cadence until ACTIVE; return the file URI.

        The tick, the caller's cancel signal and the absolute deadline race;
        whichever fires first decides the cycle.  A status call in flight is
        allowed to finish before the next cancellation check.  Ticks missed
        while a slow status call was in flight are dropped, so the next poll
        waits a full interval.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._poll_timeout
        next_tick = loop.time() + self._poll_interval

        while True:
            if cancel_event is not None and cancel_event.is_set():
                raise UploadCancelledError(uploaded.name)

            if next_tick >= deadline:
                if await _wait_for_cancel(cancel_event, deadline - loop.time()):
                    raise UploadCancelledError(uploaded.name)
                raise FilePollTimeoutError(uploaded.name, self._poll_timeout)

            if await _wait_for_cancel(cancel_event, next_tick - loop.time()):
                raise UploadCancelledError(uploaded.name)
            next_tick += self._poll_interval

            try:
                file_obj = await self._client.aio.files.get(name=uploaded.name)
            except Exception as exc:
                raise FileStatusError(uploaded.name, exc) from exc

            now = loop.time()
            if next_tick <= now:
                logger.debug(
                    "Status call for %s overran the poll interval; skipping missed ticks",
                    uploaded.name,
                )
                next_tick = now + self._poll_interval

            uploaded.state = FileState.from_remote(getattr(file_obj, "state", None))

            if uploaded.state is FileState.ACTIVE:
                logger.info("File %s is ACTIVE", uploaded.name)
                return file_obj.uri
            if uploaded.state is FileState.FAILED:
                raise FileProcessingError(uploaded.name)
            if uploaded.state is FileState.PROCESSING:
                logger.debug("File API processing... %s", uploaded.name)
                continue
            logger.warning(
                "Unknown file state %r received for %s",
                getattr(file_obj, "state", None),
                uploaded.name,
            )

    # ------------------------------------------------------------------
    # Deletion
    # ------------------------------------------------------------------

    async def delete(self, target: str | UploadedFile | None) -> None:
        """Delete a file from the File API.

        An empty or absent name means nothing was ever uploaded and is a
        no-op.  An :class:`UploadedFile` that was already deleted is a
        no-op too.

        Raises:
            FileDeleteError: The remote delete failed.
        """
        if isinstance(target, UploadedFile):
            if not self._mark_deleted(target):
                logger.debug("File %s already deleted, skipping", target.name)
                return
            name = target.name
        else:
            name = target

        if not name:
            return

        try:
            await self._client.aio.files.delete(name=name)
        except Exception as exc:
            raise FileDeleteError(name, exc) from exc
        logger.info("File API object deleted: %s", name)

    def schedule_cleanup(self, uploaded: UploadedFile) -> asyncio.Task[None] | None:
        """Delete *uploaded* in a detached, best-effort background task.

        The task is not a child of the calling task, so cancelling the
        caller does not cancel the cleanup.  It is bounded by its own
        ``cleanup_timeout``.

        Returns:
            The scheduled task, or ``None`` when there is nothing to delete.
        """
        if not uploaded.name or not self._mark_deleted(uploaded):
            return None

        task = asyncio.get_running_loop().create_task(
            self._cleanup(uploaded.name), name=f"gemlayer-cleanup:{uploaded.name}"
        )
        self._cleanup_tasks.add(task)
        task.add_done_callback(self._cleanup_tasks.discard)
        return task

    async def _cleanup(self, name: str) -> None:
        try:
            await asyncio.wait_for(
                self._client.aio.files.delete(name=name),
                timeout=self._cleanup_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Async cleanup of File API object %s timed out after %gs",
                name,
                self._cleanup_timeout,
            )
        except Exception as exc:
            logger.warning("Async cleanup of File API object %s failed: %s", name, exc)
        else:
            logger.info("File API object deleted (async cleanup): %s", name)

    async def wait_for_cleanups(self) -> None:
        """Wait for every pending background cleanup to finish."""
        if self._cleanup_tasks:
            await asyncio.gather(*list(self._cleanup_tasks), return_exceptions=True)

    @staticmethod
    def _mark_deleted(uploaded: UploadedFile) -> bool:
        """Move the lifecycle to ``deleted``; False if it already was."""
        lifecycle = uploaded.lifecycle
        if lifecycle is None:
            return True
        if lifecycle.current_state_value == "deleted":
            return False
        lifecycle.remove()
        return True


async def _wait_for_cancel(cancel_event: asyncio.Event | None, delay: float) -> bool:
    """Sleep for *delay* seconds; return True if *cancel_event* fired first."""
    delay = max(delay, 0.0)
    if cancel_event is None:
        await asyncio.sleep(delay)
        return False
    try:
        await asyncio.wait_for(cancel_event.wait(), timeout=delay)
    except asyncio.TimeoutError:
        return False
    return True
