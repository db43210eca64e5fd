"""Gemini client that extracts contact fields from photos and voice notes."""

import asyncio
import json
import logging
import os
from collections.abc import Sequence

from google import genai
from google.genai import types
from pydantic import ValidationError

from contacts2sheet.capture import DEFAULT_AUDIO_MIME, DEFAULT_IMAGE_MIME, split_data_url
from contacts2sheet.catalog import DERIVED_KEY, FIELD_KEYS
from contacts2sheet.exceptions import CaptureError, ConfigurationError, ExtractionError
from contacts2sheet.models import ContactRecord, ExtractionResult

logger = logging.getLogger(__name__)

MODEL_NAME = "gemini-3-flash-preview"

# Hints sent with the response schema for fields the model tends to misread
FIELD_DESCRIPTIONS = {
    "meetWhen": "When the meeting happened or context of meeting if available",
    "school": "University or Business School name (e.g. Wharton, HBS)",
    "industry": "Inferred industry based on company or title",
    "currentResident": "City or location derived from profile",
    "ageRange": "Estimated age range (e.g. 25-30)",
    "link": "URL found on card or implied LinkedIn URL",
    "firstImpression": "Adjectives describing the person based on photo or bio tone",
    "notes": "Summary of skills or bio",
}

REQUIRED_FIELDS = ["firstName", "lastName"]

PROMPT_RULES = (
    "For 'meetWhen', try to infer the date or context.",
    "For 'notes', summarize the bio, skills, or spoken context.",
    "For 'ageRange', DO NOT GUESS based on appearance. Only fill this if explicit age "
    "information is available. Otherwise leave EMPTY.",
    "For 'school', extract university or business school (e.g. Wharton, HBS) if visible.",
    "For 'firstImpression', ONLY fill this if explicitly stated or strongly implied by "
    "specific visual cues. If unsure or generic, leave EMPTY. Do NOT use terms like "
    "'Professional', 'Educated', or 'Smart' unless explicit evidence exists.",
    "Do NOT extract Graduation Year.",
    "Do NOT set nextContactDue, this is calculated automatically.",
    "If audio is provided, transcribe relevant details into the fields "
    "(e.g. 'This is John from Acme' -> firstName: John, company: Acme).",
)


def build_response_schema() -> types.Schema:
    """JSON schema for the model's answer: every field except nextContactDue."""
    properties = {
        key: types.Schema(type=types.Type.STRING, description=FIELD_DESCRIPTIONS.get(key))
        for key in FIELD_KEYS
        if key != DERIVED_KEY
    }
    return types.Schema(type=types.Type.OBJECT, properties=properties, required=REQUIRED_FIELDS)


def build_prompt(prior: ContactRecord | None = None) -> str:
    """Instruction text sent after the media parts."""
    lines = ["Extract contact information and map it to the fields."]
    if prior is not None:
        lines.append(f"\nExisting Data JSON: {json.dumps(prior.to_dict())}")
        lines.append(
            "Update the existing data with the provided input. Merge information "
            "intelligently. If the input contradicts the existing data, trust the new input."
        )
    else:
        lines.append("If a field is not present, leave it as an empty string.")
    lines.extend(PROMPT_RULES)
    return "\n".join(lines)


def parse_response(text: str | None) -> ExtractionResult:
    """
    Turn the model's JSON answer into an ExtractionResult.

    Raises ExtractionError for empty, non-JSON or non-object answers.
    Unknown keys and nextContactDue are dropped.
    """
    if not text or not text.strip():
        raise ExtractionError("No data extracted")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ExtractionError(f"Model returned invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ExtractionError(f"Model returned {type(data).__name__}, expected an object")

    data.pop(DERIVED_KEY, None)
    try:
        return ExtractionResult.model_validate(data)
    except ValidationError as e:
        raise ExtractionError(f"Model returned unusable fields: {e}") from e


class GeminiExtractionClient:
    """
    Sends encoded media to Gemini and returns the extracted contact fields.

    Calls are not retried; a failure is reported to the caller so the user
    can try again with the same or different media.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str = MODEL_NAME,
        client: genai.Client | None = None,
    ):
        """
        Initialize the client.

        Args:
            api_key: Gemini API key. If not provided, reads GEMINI_API_KEY.
            model: Gemini model name
            client: Pre-built genai client (used instead of api_key)

        Raises:
            ConfigurationError: If no client is given and no API key is found
        """
        self.model = model
        if client is None:
            api_key = api_key or os.environ.get("GEMINI_API_KEY")
            if not api_key:
                raise ConfigurationError(
                    "Gemini API key required. Set GEMINI_API_KEY environment variable."
                )
            client = genai.Client(api_key=api_key)
        self.client = client
        self._request_count = 0

    def build_contents(self, images: Sequence[str], audio: str | None) -> list:
        """Inline-data parts for each image and the audio clip."""
        parts: list = []
        for image in images:
            mime_type, data = split_data_url(image, DEFAULT_IMAGE_MIME)
            parts.append(types.Part.from_bytes(data=data, mime_type=mime_type))
        if audio:
            mime_type, data = split_data_url(audio, DEFAULT_AUDIO_MIME)
            parts.append(types.Part.from_bytes(data=data, mime_type=mime_type))
        return parts

    async def extract(
        self,
        images: Sequence[str] = (),
        audio: str | None = None,
        prior: ContactRecord | None = None,
    ) -> ExtractionResult:
        """
        Extract contact fields from images and/or a voice note.

        Args:
            images: Image data URLs (or bare base64 JPEG payloads)
            audio: Audio data URL, optional
            prior: Current record to merge with (smart update), optional

        Returns:
            ExtractionResult with whatever fields the model found

        Raises:
            ValueError: If neither images nor audio are given
            ExtractionError: If the call fails or the answer is unusable
        """
        if not images and not audio:
            raise ValueError("At least one image or an audio clip is required")

        try:
            contents = self.build_contents(images, audio)
        except CaptureError as e:
            raise ExtractionError(str(e)) from e
        contents.append(build_prompt(prior))

        config = types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=build_response_schema(),
        )

        self._request_count += 1
        logger.info(
            f"Extracting contact from {len(images)} image(s)"
            f"{' and audio' if audio else ''}{' (update)' if prior else ''}"
        )
        try:
            response = await asyncio.to_thread(
                self.client.models.generate_content,
                model=self.model,
                contents=contents,
                config=config,
            )
        except Exception as e:
            logger.error(f"Gemini processing failed: {e}")
            raise ExtractionError(f"Gemini request failed: {e}") from e

        result = parse_response(response.text)
        logger.info(f"Extracted {len(result.provided())} field(s)")
        return result

    @property
    def request_count(self) -> int:
        """Number of API requests made."""
        return self._request_count
