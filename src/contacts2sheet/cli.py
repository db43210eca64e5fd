"""CLI for contacts2sheet."""

import asyncio
import logging
import sys

import click

from contacts2sheet import __version__
from contacts2sheet.capture import audio_to_data_url, image_to_data_url
from contacts2sheet.catalog import CONTACT_FIELDS, get_field
from contacts2sheet.config import Settings, SettingsStore, SheetSettings, get_settings
from contacts2sheet.exceptions import CaptureError, ConfigurationError
from contacts2sheet.gemini.client import GeminiExtractionClient
from contacts2sheet.models import InputKind
from contacts2sheet.recurrence import compute_next_due
from contacts2sheet.session import NOT_CONNECTED, ContactSession
from contacts2sheet.sheets.client import SheetWebhookClient
from contacts2sheet.sheets.script import APPS_SCRIPT_SOURCE

REVIEW_ACTIONS = {
    "e": "edit a field",
    "u": "update with more photos/audio",
    "s": "save to sheet",
    "r": "start over",
    "q": "quit without saving",
}


@click.group()
@click.version_option(version=__version__)
@click.pass_context
def main(ctx: click.Context) -> None:
    """Capture contacts from business cards and voice notes into a Google Sheet."""
    ctx.ensure_object(dict)

    # Load settings
    try:
        settings = get_settings()
        ctx.obj["settings"] = settings
        level = settings.log_level
    except Exception as e:
        ctx.obj["settings_error"] = str(e)
        level = "WARNING"

    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def _require_settings(ctx: click.Context) -> Settings:
    settings: Settings | None = ctx.obj.get("settings")
    if settings is None:
        click.echo(f"Error loading settings: {ctx.obj.get('settings_error')}", err=True)
        ctx.exit(1)
    return settings


def _encode_media(image_paths: list[str], audio_path: str | None) -> tuple[list[str], str | None]:
    images = [image_to_data_url(path) for path in image_paths]
    audio = audio_to_data_url(audio_path) if audio_path else None
    return images, audio


def _prompt_media() -> tuple[list[str], str | None]:
    """Ask for more media paths; CaptureError propagates to the caller."""
    raw_images = click.prompt(
        "Image paths (space separated, blank for none)", default="", show_default=False
    )
    raw_audio = click.prompt("Audio path (blank for none)", default="", show_default=False)
    return _encode_media(raw_images.split(), raw_audio.strip() or None)


def _print_review(session: ContactSession) -> None:
    record = session.record
    click.echo()
    click.echo("=" * 50)
    click.echo(f"REVIEW CONTACT ({session.completeness}% complete)")
    click.echo("=" * 50)

    click.echo("\nExtracted:")
    for field in session.tracker.extracted_fields():
        suffix = " (auto)" if field.read_only else ""
        click.echo(f"  {field.label}: {record.get(field.key)}{suffix}")

    missing = session.tracker.missing_fields()
    if missing:
        click.echo("\nMissing:")
        for field in missing:
            value = record.get(field.key)
            marker = "+" if value else "-"
            click.echo(f"  {marker} {field.label}: {value}")
    click.echo()


def _prompt_edit(session: ContactSession) -> None:
    editable = [field.key for field in CONTACT_FIELDS if not field.read_only]
    key = click.prompt("Field", type=click.Choice(editable, case_sensitive=False))
    # Choice may normalise case; map back to the catalog key
    key = next(k for k in editable if k.lower() == key.lower())
    field = get_field(key)

    if field.options:
        click.echo(f"Options: {', '.join(field.options)}")
    value = click.prompt(field.label, default=session.record.get(key), show_default=True)
    value = value.strip()

    if field.input_kind is InputKind.SELECT and value and value not in field.options:
        click.echo(f"'{value}' is not one of the {field.label} options", err=True)
        return
    session.edit(key, value)
    if key in ("lastContact", "contactFrequency"):
        due = session.record.next_contact_due or "(none)"
        click.echo(f"Next contact due: {due}")


async def _review_loop(
    session: ContactSession,
    webhook: SheetWebhookClient,
    store: SettingsStore,
) -> int:
    while True:
        _print_review(session)
        for letter, description in REVIEW_ACTIONS.items():
            click.echo(f"  [{letter}] {description}")
        action = click.prompt(
            "Action", type=click.Choice(list(REVIEW_ACTIONS)), default="s", show_choices=False
        )

        if action == "e":
            _prompt_edit(session)

        elif action == "u":
            try:
                images, audio = _prompt_media()
            except CaptureError as e:
                click.echo(f"Error: {e}", err=True)
                continue
            if not images and not audio:
                click.echo("Nothing to update with.")
                continue
            click.echo("Updating...")
            if not await session.smart_update(images, audio):
                click.echo(session.error, err=True)

        elif action == "s":
            if await _save(session, webhook, store):
                return 0

        elif action == "r":
            session.reset()
            click.echo("Starting over.")
            if not await _capture_first(session, *_prompt_media_safely()):
                return 0

        elif action == "q":
            click.echo("Discarded.")
            return 0


def _prompt_media_safely() -> tuple[list[str], str | None]:
    while True:
        try:
            return _prompt_media()
        except CaptureError as e:
            click.echo(f"Error: {e}", err=True)


async def _capture_first(
    session: ContactSession,
    images: list[str],
    audio: str | None,
    interactive: bool = True,
) -> bool:
    """Run the first extraction, offering retries. False if nothing was captured."""
    while True:
        if not images and not audio:
            click.echo("No photos or audio given.", err=True)
            return False
        click.echo("Analyzing...")
        if await session.analyze(images, audio):
            return True
        click.echo(session.error, err=True)
        if not interactive or not click.confirm("Retry?", default=True):
            return False


def _prompt_connection(store: SettingsStore) -> SheetSettings:
    """Ask for the webhook (and optional view) URL and persist them."""
    sheet = store.load()
    webhook_url = click.prompt("Webhook URL (blank to cancel)", default="", show_default=False)
    if not webhook_url.strip():
        return sheet
    sheet_view_url = click.prompt(
        "Sheet view URL (optional)", default=sheet.sheet_view_url, show_default=False
    )
    sheet = sheet.model_copy(
        update={"webhook_url": webhook_url.strip(), "sheet_view_url": sheet_view_url.strip()}
    )
    store.save(sheet)
    click.echo("Settings saved!")
    return sheet


async def _save(
    session: ContactSession,
    webhook: SheetWebhookClient,
    store: SettingsStore,
    interactive: bool = True,
) -> bool:
    sheet = store.load()
    if not sheet.is_connected and interactive:
        click.echo("Not connected to a Google Sheet.")
        sheet = _prompt_connection(store)

    click.echo("Saving...")
    if await session.save(webhook, sheet.webhook_url):
        click.echo("Sent to Google Sheet.")
        if sheet.sheet_view_url:
            click.echo(f"View: {sheet.sheet_view_url}")
        return True

    click.echo(session.error, err=True)
    if session.error == NOT_CONNECTED:
        click.echo("Run 'contacts2sheet settings --webhook-url URL' to connect.", err=True)
    return False


@main.command()
@click.option(
    "--image",
    "image_paths",
    multiple=True,
    type=click.Path(dir_okay=False),
    help="Photo of a business card or profile (repeatable)",
)
@click.option("--audio", "audio_path", type=click.Path(dir_okay=False), help="Recorded voice note")
@click.option("--yes", is_flag=True, help="Save without reviewing")
@click.pass_context
def capture(ctx: click.Context, image_paths: tuple[str, ...], audio_path: str | None, yes: bool) -> None:
    """Extract a contact from photos and/or a voice note, review it, and save it.

    The contact starts with today's date as Last Contact and a default
    frequency of every 4 months. Next Contact Due is always calculated.
    """
    settings = _require_settings(ctx)

    if not image_paths and not audio_path:
        click.echo("Error: provide at least one --image or an --audio file", err=True)
        ctx.exit(1)

    try:
        images, audio = _encode_media(list(image_paths), audio_path)
        extractor = GeminiExtractionClient(settings.gemini_api_key, model=settings.gemini_model)
    except (CaptureError, ConfigurationError) as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)

    store = SettingsStore(settings.home)

    async def run() -> int:
        webhook = SheetWebhookClient(confirm_delay=settings.confirm_delay)
        session = ContactSession(extractor)
        try:
            if not await _capture_first(session, images, audio, interactive=not yes):
                return 1
            if yes:
                _print_review(session)
                return 0 if await _save(session, webhook, store, interactive=False) else 1
            return await _review_loop(session, webhook, store)
        finally:
            await webhook.close()

    try:
        exit_code = asyncio.run(run())
    except (KeyboardInterrupt, click.Abort):
        click.echo("\nCapture interrupted by user")
        ctx.exit(130)
    ctx.exit(exit_code)


@main.command("settings")
@click.option("--webhook-url", default=None, help="Apps Script web app URL")
@click.option("--sheet-view-url", default=None, help="Link to open the sheet")
@click.pass_context
def settings_cmd(ctx: click.Context, webhook_url: str | None, sheet_view_url: str | None) -> None:
    """Show or update the Google Sheet connection."""
    settings = _require_settings(ctx)
    store = SettingsStore(settings.home)
    sheet = store.load()

    if webhook_url is not None or sheet_view_url is not None:
        updates = {}
        if webhook_url is not None:
            updates["webhook_url"] = webhook_url.strip()
        if sheet_view_url is not None:
            updates["sheet_view_url"] = sheet_view_url.strip()
        sheet = sheet.model_copy(update=updates)
        store.save(sheet)
        click.echo("Settings saved!")
        click.echo()

    click.echo("Connected to Google Sheet" if sheet.is_connected else "Not Connected")
    click.echo(f"  Webhook URL: {sheet.webhook_url or '(not set)'}")
    click.echo(f"  Sheet view URL: {sheet.sheet_view_url or '(not set)'}")


@main.command()
def script() -> None:
    """Print the Apps Script code to paste into your Google Sheet."""
    click.echo(APPS_SCRIPT_SOURCE)


@main.command()
def fields() -> None:
    """List the contact fields."""
    for field in CONTACT_FIELDS:
        flags = " [read-only]" if field.read_only else ""
        click.echo(f"{field.key:<18} {field.label:<20} {field.input_kind.value}{flags}")
        if field.options:
            click.echo(f"{'':<18} options: {', '.join(field.options)}")


@main.command("next-due")
@click.argument("last_contact")
@click.argument("frequency", default="Every 4 months")
@click.pass_context
def next_due(ctx: click.Context, last_contact: str, frequency: str) -> None:
    """Calculate the next contact date from LAST_CONTACT (YYYY-MM-DD) and FREQUENCY."""
    due = compute_next_due(last_contact, frequency)
    if not due:
        click.echo(f"Error: could not compute a due date from '{last_contact}' and '{frequency}'", err=True)
        ctx.exit(1)
    click.echo(due)


if __name__ == "__main__":
    main()
