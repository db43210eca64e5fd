"""Contact record merging, edits and completeness tracking."""

import logging
from collections.abc import Mapping

from contacts2sheet.catalog import CONTACT_FIELDS, DEFAULT_FREQUENCY, DERIVED_KEY, get_field
from contacts2sheet.models import ContactRecord, ExtractionResult, FieldDefinition, attr_for_key
from contacts2sheet.recurrence import compute_next_due

logger = logging.getLogger(__name__)


def new_record(today: str) -> ContactRecord:
    """Initial session record: today as last contact, default frequency."""
    return ContactRecord(
        last_contact=today,
        contact_frequency=DEFAULT_FREQUENCY,
        next_contact_due=compute_next_due(today, DEFAULT_FREQUENCY),
    )


def with_next_due(record: ContactRecord) -> ContactRecord:
    """Recompute the derived next-contact-due field."""
    return record.replace(
        next_contact_due=compute_next_due(record.last_contact, record.contact_frequency)
    )


def merge(
    prior: ContactRecord,
    extracted: ExtractionResult | Mapping[str, str | None],
) -> ContactRecord:
    """
    Overlay an extraction result onto a prior record.

    Rules:
    - Non-empty extracted values replace the prior value
    - Empty or absent extracted values keep the prior value
    - nextContactDue is always recomputed from the merged lastContact
      and contactFrequency, never copied from the extraction
    - Unknown keys are ignored

    Neither input is modified.
    """
    if not isinstance(extracted, ExtractionResult):
        extracted = ExtractionResult.model_validate(dict(extracted))

    updates = {
        attr_for_key(key): value
        for key, value in extracted.provided().items()
        if key != DERIVED_KEY
    }
    if updates:
        logger.debug(f"Merging extracted fields: {sorted(updates)}")

    return with_next_due(prior.replace(**updates))


def apply_edit(record: ContactRecord, key: str, value: str) -> ContactRecord:
    """
    Apply a single user edit.

    Editing lastContact or contactFrequency recomputes nextContactDue.
    Raises ValueError for unknown or read-only fields.
    """
    field = get_field(key)
    if field.read_only:
        raise ValueError(f"Field {key!r} is read-only")

    updated = record.replace(**{attr_for_key(key): value or ""})
    if key in ("lastContact", "contactFrequency"):
        updated = with_next_due(updated)
    return updated


def missing_keys(record: ContactRecord) -> frozenset[str]:
    """Catalog keys whose value is empty."""
    return frozenset(field.key for field in CONTACT_FIELDS if not record.get(field.key))


def completeness(record: ContactRecord) -> int:
    """Percentage of catalog fields filled, rounded half up."""
    total = len(CONTACT_FIELDS)
    filled = total - len(missing_keys(record))
    return percent(filled, total)


def percent(part: int, total: int) -> int:
    """``part / total * 100`` rounded to the nearest integer, halves up."""
    if total <= 0:
        return 0
    return (part * 200 + total) // (total * 2)


class MissingFieldTracker:
    """
    Remembers which fields were empty the first time the record was reviewed.

    The first call to ``freeze`` snapshots the missing keys; later calls are
    ignored, so the extracted/missing split stays fixed while the user fills
    in the missing fields.
    """

    def __init__(self) -> None:
        self._initial_missing: frozenset[str] | None = None

    @property
    def frozen(self) -> bool:
        return self._initial_missing is not None

    @property
    def initial_missing(self) -> frozenset[str]:
        return self._initial_missing or frozenset()

    def freeze(self, record: ContactRecord) -> frozenset[str]:
        if self._initial_missing is None:
            self._initial_missing = missing_keys(record)
            logger.debug(f"Frozen {len(self._initial_missing)} initially missing fields")
        return self._initial_missing

    def reset(self) -> None:
        self._initial_missing = None

    def extracted_fields(self) -> list[FieldDefinition]:
        return [field for field in CONTACT_FIELDS if field.key not in self.initial_missing]

    def missing_fields(self) -> list[FieldDefinition]:
        return [field for field in CONTACT_FIELDS if field.key in self.initial_missing]
