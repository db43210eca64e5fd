"""Capture session state: one contact from first photo to saved row."""

import logging
from collections.abc import Callable, Sequence
from datetime import date
from enum import Enum
from typing import Protocol

from contacts2sheet.exceptions import ExtractionError, PersistenceError
from contacts2sheet.merge import MissingFieldTracker, apply_edit, completeness, merge, new_record
from contacts2sheet.models import ContactRecord, ExtractionResult, SaveResult

logger = logging.getLogger(__name__)

ANALYZE_FAILED = "Failed to process input. Please try again."
UPDATE_FAILED = "Could not update contact info. Please try again."
NOT_CONNECTED = "Please connect your Google Sheet in Settings first."
SAVE_FAILED = "Could not send data to Google Sheet. Check your URL."


class Phase(str, Enum):
    IDLE = "idle"
    ANALYZING = "analyzing"
    REVIEW = "review"
    SAVING = "saving"
    SUCCESS = "success"


class Extractor(Protocol):
    async def extract(
        self,
        images: Sequence[str] = (),
        audio: str | None = None,
        prior: ContactRecord | None = None,
    ) -> ExtractionResult: ...


class Persister(Protocol):
    async def append(self, url: str, record: ContactRecord) -> SaveResult: ...


def _today() -> str:
    return date.today().isoformat()


class ContactSession:
    """
    Owns the contact being captured and the phase of the capture flow.

    All mutation goes through the methods below. Collaborator failures are
    caught here and stored in ``error`` as a user-facing message; the record
    is left as it was before the failed call.
    """

    def __init__(self, extractor: Extractor, today: Callable[[], str] = _today):
        self.extractor = extractor
        self._today = today
        self.record: ContactRecord = new_record(today())
        self.phase = Phase.IDLE
        self.tracker = MissingFieldTracker()
        self.updating = False
        self.error: str | None = None
        self.last_save: SaveResult | None = None

    @property
    def saved(self) -> bool:
        return self.phase is Phase.SUCCESS

    @property
    def completeness(self) -> int:
        return completeness(self.record)

    def reset(self) -> None:
        """Start over with a fresh record."""
        self.record = new_record(self._today())
        self.phase = Phase.IDLE
        self.tracker.reset()
        self.updating = False
        self.error = None
        self.last_save = None

    def enter_review(self) -> None:
        """Show the review form; the first call freezes the missing-field split."""
        self.phase = Phase.REVIEW
        self.tracker.freeze(self.record)

    async def analyze(self, images: Sequence[str] = (), audio: str | None = None) -> bool:
        """
        Extract a contact from the first batch of media.

        Returns True when the session moved to review. With no media this
        does nothing and returns False.
        """
        if not images and not audio:
            return False

        self.phase = Phase.ANALYZING
        self.error = None
        try:
            result = await self.extractor.extract(images=images, audio=audio)
        except (ExtractionError, ValueError) as e:
            logger.error(f"Extraction failed: {e}")
            self.error = ANALYZE_FAILED
            self.phase = Phase.IDLE
            return False

        self.record = merge(self.record, result)
        self.enter_review()
        return True

    async def smart_update(self, images: Sequence[str] = (), audio: str | None = None) -> bool:
        """
        Merge more media into the current record during review.

        Refused while another update is in flight or after the record is saved.
        """
        if (not images and not audio) or self.updating or self.saved:
            return False

        self.updating = True
        self.error = None
        try:
            result = await self.extractor.extract(images=images, audio=audio, prior=self.record)
            self.record = merge(self.record, result)
            return True
        except (ExtractionError, ValueError) as e:
            logger.error(f"Smart update failed: {e}")
            self.error = UPDATE_FAILED
            return False
        finally:
            self.updating = False

    def edit(self, key: str, value: str) -> None:
        """
        Apply a user edit to one field.

        Raises:
            ValueError: For unknown or read-only fields, or after saving
        """
        if self.saved:
            raise ValueError("Contact already saved")
        self.record = apply_edit(self.record, key, value)

    async def save(self, persister: Persister, webhook_url: str) -> bool:
        """
        Hand the record to the sheet webhook.

        Returns True on (optimistic) success. A missing URL or transport
        error leaves the session in review with ``error`` set.
        """
        if self.saved:
            return True
        if not webhook_url:
            self.error = NOT_CONNECTED
            return False

        self.phase = Phase.SAVING
        self.error = None
        try:
            self.last_save = await persister.append(webhook_url, self.record)
        except PersistenceError as e:
            logger.error(f"Save failed: {e}")
            self.error = SAVE_FAILED
            self.phase = Phase.REVIEW
            return False

        self.phase = Phase.SUCCESS
        return True
