"""
Submission pipeline shared by every form.

A submission moves Received -> Validated -> (FileAccepted) -> Persisted ->
SubmitterNotified -> AdminNotified -> Completed. Validation, file and storage
failures end in Rejected and are raised to the caller; an email failure after
the record is saved ends in PartiallyCompleted and is reported on the outcome,
since the saved record, not the email, is what counts.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Type

from starlette.concurrency import run_in_threadpool

from database import RecordStore
from errors import DeliveryError, DuplicateRecord, IntakeError
from mailer import DeliveryReceipt, NotificationDispatcher
from notifications import NoticeSet
from schemas import FormModel
from uploads import IncomingFile, ResumeIntake
from validation import DEFAULT_REJECTION, validate


logger = logging.getLogger(__name__)


class SubmissionState(str, Enum):
    RECEIVED = "received"
    VALIDATED = "validated"
    FILE_ACCEPTED = "file_accepted"
    PERSISTED = "persisted"
    SUBMITTER_NOTIFIED = "submitter_notified"
    ADMIN_NOTIFIED = "admin_notified"
    COMPLETED = "completed"
    REJECTED = "rejected"
    PARTIALLY_COMPLETED = "partially_completed"


@dataclass
class SubmissionOutcome:
    kind: str
    state: SubmissionState = SubmissionState.RECEIVED
    form: Optional[FormModel] = None
    record_id: Optional[str] = None
    created_at: Optional[datetime] = None
    duplicate: bool = False
    delivery_error: Optional[DeliveryError] = None
    receipts: List[DeliveryReceipt] = field(default_factory=list)
    history: List[SubmissionState] = field(default_factory=lambda: [SubmissionState.RECEIVED])

    @property
    def notifications_sent(self) -> bool:
        return (
            self.state == SubmissionState.COMPLETED
            and self.delivery_error is None
            and not self.duplicate
            and all(receipt.sent for receipt in self.receipts)
        )


NoticeRenderer = Callable[[Any, str, Dict[str, Any]], NoticeSet]
ResponseBuilder = Callable[[SubmissionOutcome], Tuple[int, Dict[str, Any]]]


@dataclass
class SubmissionKind:
    """Everything that distinguishes one form from another."""
    name: str
    schema: Type[FormModel]
    store: RecordStore
    notices: NoticeRenderer
    respond: ResponseBuilder
    resume: Optional[ResumeIntake] = None
    unique_email: bool = False
    rejection_message: str = DEFAULT_REJECTION


class SubmissionOrchestrator:
    def __init__(self, kind: SubmissionKind, dispatcher: NotificationDispatcher):
        self.kind = kind
        self.dispatcher = dispatcher

    def _advance(self, outcome: SubmissionOutcome, state: SubmissionState, **extra: Any) -> None:
        outcome.state = state
        outcome.history.append(state)
        logger.info(
            "%s submission %s",
            self.kind.name,
            state.value,
            extra={"form": self.kind.name, "stage": state.value, "record_id": outcome.record_id or "-", **extra},
        )

    async def submit(self, fields: Mapping[str, Any], upload: Optional[IncomingFile] = None) -> SubmissionOutcome:
        """Run one submission to a terminal state.

        Raises the ``IntakeError`` that rejected the submission; returns the
        outcome for Completed and PartiallyCompleted submissions.
        """
        outcome = SubmissionOutcome(self.kind.name)
        started = time.perf_counter()
        try:
            await self._run(outcome, fields, upload)
        except IntakeError as e:
            self._advance(outcome, SubmissionState.REJECTED, error=e.kind.value)
            raise
        logger.info(
            "%s submission finished",
            self.kind.name,
            extra={
                "form": self.kind.name,
                "stage": outcome.state.value,
                "record_id": outcome.record_id,
                "duration_ms": int((time.perf_counter() - started) * 1000),
            },
        )
        return outcome

    async def _run(self, outcome: SubmissionOutcome, fields: Mapping[str, Any], upload: Optional[IncomingFile]) -> None:
        kind = self.kind
        # The resume is mandatory: its absence is reported before any field error
        if kind.resume is not None:
            upload = kind.resume.require(upload)

        form = validate(kind.schema, fields, kind.rejection_message)
        outcome.form = form
        self._advance(outcome, SubmissionState.VALIDATED)

        if kind.unique_email:
            existing = await run_in_threadpool(kind.store.find_by_email, form.email)
            if existing is not None:
                self._already_recorded(outcome, existing)
                return

        record = form.to_record()
        if kind.resume is not None:
            record["resume_path"] = await run_in_threadpool(kind.resume.accept, upload)
            self._advance(outcome, SubmissionState.FILE_ACCEPTED)

        try:
            receipt = await run_in_threadpool(kind.store.insert, record)
        except DuplicateRecord:
            await self._discard_resume(record)
            if not kind.unique_email:
                raise
            # Lost a race with a concurrent identical submission
            existing = await run_in_threadpool(kind.store.find_by_email, form.email)
            if existing is None:
                raise
            self._already_recorded(outcome, existing)
            return
        except Exception:
            # A rejected submission keeps nothing, including its stored resume
            await self._discard_resume(record)
            raise
        outcome.record_id = receipt.id
        outcome.created_at = receipt.created_at
        self._advance(outcome, SubmissionState.PERSISTED)

        await self._notify(outcome, kind.notices(form, receipt.id, record))

    async def _discard_resume(self, record: Dict[str, Any]) -> None:
        path = record.get("resume_path")
        if path is not None and self.kind.resume is not None:
            await run_in_threadpool(self.kind.resume.discard, path)

    def _already_recorded(self, outcome: SubmissionOutcome, existing: Dict[str, Any]) -> None:
        outcome.duplicate = True
        outcome.record_id = str(existing.get("_id"))
        outcome.created_at = existing.get("created_at")
        self._advance(outcome, SubmissionState.COMPLETED)

    async def _notify(self, outcome: SubmissionOutcome, notices: NoticeSet) -> None:
        steps = (
            (notices.submitter, SubmissionState.SUBMITTER_NOTIFIED),
            (notices.admin, SubmissionState.ADMIN_NOTIFIED),
        )
        for notice, reached in steps:
            if notice is None:
                continue
            try:
                receipt = await run_in_threadpool(
                    self.dispatcher.send, notice.to, notice.subject, notice.text, notice.html
                )
            except DeliveryError as e:
                outcome.delivery_error = e
                logger.warning(
                    "%s notice for %s submission not sent; record %s is kept",
                    notice.audience,
                    self.kind.name,
                    outcome.record_id,
                    extra={"form": self.kind.name, "stage": "notify", "error": e.message},
                )
                self._advance(outcome, SubmissionState.PARTIALLY_COMPLETED)
                return
            outcome.receipts.append(receipt)
            self._advance(outcome, reached)
        self._advance(outcome, SubmissionState.COMPLETED)
