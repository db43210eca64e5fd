"""Contact field catalog: keys, labels, input kinds and options."""

from contacts2sheet.models import ContactRecord, FieldDefinition, InputKind

DERIVED_KEY = "nextContactDue"
DEFAULT_FREQUENCY = "Every 4 months"


def generate_age_ranges(start: int = 20, stop: int = 80, step: int = 5) -> tuple[str, ...]:
    """Consecutive ``"lo-hi"`` bands covering ``start`` to ``stop``."""
    return tuple(f"{lo}-{lo + step}" for lo in range(start, stop, step))


SCHOOL_OPTIONS = (
    "Wharton",
    "Lauder",
    "HBS",
    "CBS",
    "Stanford",
    "UCLA",
    "MIT Sloan",
    "Booth",
    "Kellogg",
    "INSEAD",
    "LBS",
    "Yale SOM",
    "Berkeley Haas",
)

IMPORTANCE_OPTIONS = ("Very High", "High", "Medium", "Low")

FREQUENCY_OPTIONS = (
    "Every month",
    "Every 2 months",
    "Every 3 months",
    "Every 4 months",
    "Every 6 months",
    "Every 9 months",
    "Every year",
)

AGE_RANGE_OPTIONS = generate_age_ranges()

CONTACT_FIELDS: tuple[FieldDefinition, ...] = (
    FieldDefinition(key="meetWhen", label="Meet When", placeholder="e.g. Happy Hour Oct 2023"),
    FieldDefinition(key="firstName", label="First Name", placeholder="John"),
    FieldDefinition(key="lastName", label="Last Name", placeholder="Doe"),
    FieldDefinition(key="title", label="Title", placeholder="Senior Engineer"),
    FieldDefinition(key="company", label="Company", placeholder="Acme Corp"),
    FieldDefinition(
        key="school",
        label="School",
        input_kind=InputKind.SUGGEST,
        options=SCHOOL_OPTIONS,
        placeholder="Select or type school",
    ),
    FieldDefinition(key="industry", label="Industry", placeholder="Tech"),
    FieldDefinition(key="currentResident", label="Current Resident", placeholder="San Francisco, CA"),
    FieldDefinition(key="nationality", label="Nationality", placeholder="USA"),
    FieldDefinition(
        key="ageRange",
        label="Age Range",
        input_kind=InputKind.SELECT,
        options=AGE_RANGE_OPTIONS,
        placeholder="Select age range",
    ),
    FieldDefinition(key="birthday", label="Birthday", placeholder="MM/DD"),
    FieldDefinition(key="email", label="Email", input_kind=InputKind.EMAIL, placeholder="john@example.com"),
    FieldDefinition(key="phone", label="Phone", input_kind=InputKind.PHONE, placeholder="+1 555-0123"),
    FieldDefinition(
        key="link",
        label="Link",
        input_kind=InputKind.URL,
        placeholder="https://linkedin.com/in/...",
    ),
    FieldDefinition(key="firstImpression", label="First Impression", placeholder="Friendly, knowledgeable"),
    FieldDefinition(
        key="importance",
        label="Importance",
        input_kind=InputKind.SELECT,
        options=IMPORTANCE_OPTIONS,
        placeholder="Select importance",
    ),
    FieldDefinition(
        key="contactFrequency",
        label="Contact Frequency",
        input_kind=InputKind.SELECT,
        options=FREQUENCY_OPTIONS,
        placeholder="Select frequency",
    ),
    FieldDefinition(key="lastContact", label="Last Contact", input_kind=InputKind.DATE, placeholder="YYYY-MM-DD"),
    FieldDefinition(key="lastContactNotes", label="Last Contact Notes", placeholder="Met at coffee shop..."),
    FieldDefinition(key="notes", label="Notes", placeholder="General notes..."),
    FieldDefinition(
        key=DERIVED_KEY,
        label="Next Contact Due",
        input_kind=InputKind.DATE,
        read_only=True,
        placeholder="YYYY-MM-DD",
    ),
)

FIELD_KEYS: tuple[str, ...] = tuple(field.key for field in CONTACT_FIELDS)

# Sheet column header for each key (header row written by the webhook script)
SHEET_COLUMNS: dict[str, str] = {field.key: field.label for field in CONTACT_FIELDS}

_FIELDS_BY_KEY = {field.key: field for field in CONTACT_FIELDS}

if set(FIELD_KEYS) != set(ContactRecord.keys()):
    raise RuntimeError("Field catalog and ContactRecord keys are out of sync")


def get_field(key: str) -> FieldDefinition:
    """Look up a field definition by key."""
    try:
        return _FIELDS_BY_KEY[key]
    except KeyError:
        raise ValueError(f"Unknown contact field: {key!r}") from None
