"""Data models for contacts2sheet."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class InputKind(str, Enum):
    """How a field is entered in the review form."""

    TEXT = "text"
    DATE = "date"
    EMAIL = "email"
    URL = "url"
    PHONE = "phone"
    SELECT = "select"
    SUGGEST = "suggest"


class FieldDefinition(BaseModel):
    """One entry of the field catalog."""

    model_config = ConfigDict(frozen=True)

    key: str
    label: str
    input_kind: InputKind = InputKind.TEXT
    options: tuple[str, ...] = ()
    read_only: bool = False
    placeholder: str = ""


class _ContactFields(BaseModel):
    """The closed set of contact fields, all plain strings.

    Attributes are snake_case; the wire/catalog keys are the camelCase aliases
    (``firstName``, ``nextContactDue``, ...). Empty string is the only
    "unfilled" value: ``None`` coerces to ``""`` and unknown keys are dropped.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    meet_when: str = ""
    first_name: str = ""
    last_name: str = ""
    title: str = ""
    company: str = ""
    school: str = ""
    industry: str = ""
    current_resident: str = ""
    nationality: str = ""
    age_range: str = ""
    birthday: str = ""
    email: str = ""
    phone: str = ""
    link: str = ""
    first_impression: str = ""
    importance: str = ""
    contact_frequency: str = ""
    last_contact: str = ""
    last_contact_notes: str = ""
    notes: str = ""
    next_contact_due: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_to_string(cls, value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, str):
            return value
        return str(value)

    @classmethod
    def keys(cls) -> list[str]:
        """Catalog keys in declaration order."""
        return [info.alias or name for name, info in cls.model_fields.items()]

    def get(self, key: str) -> str:
        """Value for a camelCase key; unknown keys read as empty."""
        attr = _ATTR_BY_KEY.get(key)
        return getattr(self, attr) if attr else ""

    def to_dict(self) -> dict[str, str]:
        """camelCase key -> value, in catalog order."""
        return self.model_dump(by_alias=True)


class ContactRecord(_ContactFields):
    """A complete contact: every catalog key present, all values strings.

    ``next_contact_due`` is derived from ``last_contact`` and
    ``contact_frequency`` and is never taken from user input or extraction.
    """

    def replace(self, **changes: str) -> "ContactRecord":
        """Copy with the given snake_case attributes replaced."""
        return self.model_copy(update=changes)


class ExtractionResult(_ContactFields):
    """Partial contact returned by the extraction model.

    Absent and empty values both mean "no new information".
    """

    def provided(self) -> dict[str, str]:
        """Only the keys that carry a non-empty value."""
        return {key: value for key, value in self.to_dict().items() if value}


_ATTR_BY_KEY: dict[str, str] = {
    info.alias or name: name for name, info in _ContactFields.model_fields.items()
}


def attr_for_key(key: str) -> str:
    """Map a camelCase catalog key to its snake_case attribute name."""
    try:
        return _ATTR_BY_KEY[key]
    except KeyError:
        raise ValueError(f"Unknown contact field: {key!r}") from None


class SaveResult(BaseModel):
    """Outcome of handing a record to the sheet webhook."""

    url: str
    fields_sent: int = 0
    confirmed: bool = Field(
        default=False,
        description="Always False: the webhook transport cannot observe delivery",
    )
