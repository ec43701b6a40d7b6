"""Submission pipeline: group, render, persist, upload and notify.

One ``SubmissionPipeline`` instance handles exactly one submission. Steps run
strictly in sequence. Blocking steps (rendering, SQLite reads and writes,
upload, email) are pushed off the event loop with ``asyncio.to_thread`` and
upload/email are bounded by timeouts. Fatal failures move the pipeline to
``ABORTED`` and propagate to the caller; an email failure only downgrades the
run to ``PARTIALLY_COMPLETED``.
"""

import asyncio
import logging
import random
from enum import Enum
from typing import Any

from ... import config
from ...errors import NotificationError, PersistenceError, QuizResultsError, UploadError
from ...models import Submission
from .catalog import QuestionCatalog
from .grouper import group_answers
from .renderer import ResultRenderer

logger = logging.getLogger(__name__)


class PipelineState(str, Enum):
    RECEIVED = "received"
    GROUPED = "grouped"
    RENDERED = "rendered"
    UPLOADED = "uploaded"
    PERSISTED = "persisted"
    NOTIFIED = "notified"
    COMPLETED = "completed"
    PARTIALLY_COMPLETED = "partially_completed"
    ABORTED = "aborted"


def build_document_name(submission: Submission, suffix: int | None = None) -> str:
    if suffix is None:
        suffix = random.randint(1000, 9999)
    return f"{submission.user_name}_{submission.user_surname}_{suffix}.pdf"


class SubmissionPipeline:
    def __init__(
        self,
        catalog: QuestionCatalog,
        store: Any,
        blob_store: Any,
        notifier: Any,
        renderer: ResultRenderer | None = None,
        *,
        upload_timeout: float | None = None,
        notify_timeout: float | None = None,
    ):
        self.catalog = catalog
        self.store = store
        self.blob_store = blob_store
        self.notifier = notifier
        self.renderer = renderer or ResultRenderer(catalog)
        self.upload_timeout = config.UPLOAD_TIMEOUT_SECONDS if upload_timeout is None else upload_timeout
        self.notify_timeout = config.NOTIFY_TIMEOUT_SECONDS if notify_timeout is None else notify_timeout

        self.state = PipelineState.RECEIVED
        self.history: list[PipelineState] = [PipelineState.RECEIVED]
        self.abort_reason: QuizResultsError | None = None
        self.submission_id: str | None = None
        self.notification_error: NotificationError | None = None

    def _advance(self, state: PipelineState) -> None:
        self.state = state
        self.history.append(state)
        logger.debug("Submission pipeline -> %s (id=%s)", state.value, self.submission_id)

    def _abort(self, reason: QuizResultsError) -> None:
        self.abort_reason = reason
        self._advance(PipelineState.ABORTED)
        logger.error("Submission pipeline aborted after %s: %s", self.history[-2].value, reason)

    async def run(self, submission: Submission) -> Submission:
        """Process ``submission`` and return the stored record with its document URL."""
        if self.state is not PipelineState.RECEIVED:
            raise RuntimeError("A SubmissionPipeline can only run once")

        try:
            grouped = group_answers(submission.answers, self.catalog)
            self._advance(PipelineState.GROUPED)

            document = await asyncio.to_thread(self.renderer.render, submission, grouped)
            self._advance(PipelineState.RENDERED)

            self.submission_id = await asyncio.to_thread(self.store.create, submission)
            document_name = build_document_name(submission)
            document_url = await self._upload(document_name, document)
            self._advance(PipelineState.UPLOADED)

            await asyncio.to_thread(self.store.set_document_url, self.submission_id, document_url)
            stored = await asyncio.to_thread(self.store.get, self.submission_id)
            if stored is None:
                raise PersistenceError(f"Submission {self.submission_id} vanished after update")
            self._advance(PipelineState.PERSISTED)
        except QuizResultsError as exc:
            self._abort(exc)
            raise

        try:
            await self._notify(submission, document_name, document_url, document)
        except NotificationError as exc:
            self.notification_error = exc
            logger.warning("Results email for submission %s failed: %s", self.submission_id, exc)
            self._advance(PipelineState.PARTIALLY_COMPLETED)
        else:
            self._advance(PipelineState.NOTIFIED)
            self._advance(PipelineState.COMPLETED)

        logger.info("Submission %s stored with document %s", self.submission_id, document_url)
        return stored

    async def _upload(self, document_name: str, document: bytes) -> str:
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self.blob_store.upload, document_name, document),
                timeout=self.upload_timeout,
            )
        except UploadError:
            raise
        except asyncio.TimeoutError as exc:
            raise UploadError(f"Upload of {document_name} timed out after {self.upload_timeout}s") from exc
        except Exception as exc:
            raise UploadError(f"Upload of {document_name} failed: {exc}") from exc

    async def _notify(self, submission: Submission, document_name: str, document_url: str, document: bytes) -> None:
        try:
            await asyncio.wait_for(
                asyncio.to_thread(
                    self.notifier.notify,
                    submission.user_email,
                    submission.user_name,
                    document_name,
                    document_url,
                    document=document,
                ),
                timeout=self.notify_timeout,
            )
        except NotificationError:
            raise
        except asyncio.TimeoutError as exc:
            raise NotificationError(f"Results email timed out after {self.notify_timeout}s") from exc
        except Exception as exc:
            raise NotificationError(f"Results email failed: {exc}") from exc
