"""CLI tests using click's CliRunner with fake collaborators."""
import json

import pytest
from click.testing import CliRunner

from contacts2sheet import cli
from contacts2sheet.config import Settings, SettingsStore, SheetSettings
from contacts2sheet.exceptions import ExtractionError
from contacts2sheet.recurrence import compute_next_due
from tests.fakes import FakeExtractor, FakePersister

WEBHOOK = "https://script.google.com/macros/s/abc/exec"


@pytest.fixture
def settings(tmp_path, monkeypatch):
    settings = Settings(
        _env_file=None,
        gemini_api_key="test-key",
        home=tmp_path / "home",
        confirm_delay=0,
    )
    monkeypatch.setattr(cli, "get_settings", lambda: settings)
    return settings


@pytest.fixture
def card(tmp_path):
    path = tmp_path / "card.jpg"
    path.write_bytes(b"fake-jpeg")
    return str(path)


@pytest.fixture
def persister(monkeypatch):
    persister = FakePersister()
    monkeypatch.setattr(cli, "SheetWebhookClient", lambda **kwargs: persister)
    return persister


def use_extractor(monkeypatch, *results):
    extractor = FakeExtractor(*results)
    monkeypatch.setattr(cli, "GeminiExtractionClient", lambda *args, **kwargs: extractor)
    return extractor


def connect(settings):
    SettingsStore(settings.home).save(SheetSettings(webhook_url=WEBHOOK))


def test_next_due():
    runner = CliRunner()
    result = runner.invoke(cli.main, ["next-due", "2024-06-15", "Every 3 months"])
    assert result.exit_code == 0
    assert result.output.strip() == "2024-09-15"


def test_next_due_default_frequency_and_bad_date():
    runner = CliRunner()
    assert runner.invoke(cli.main, ["next-due", "2024-01-01"]).output.strip() == "2024-05-01"
    result = runner.invoke(cli.main, ["next-due", "not-a-date"])
    assert result.exit_code == 1


def test_fields_lists_catalog():
    result = CliRunner().invoke(cli.main, ["fields"])
    assert result.exit_code == 0
    assert "nextContactDue" in result.output
    assert "[read-only]" in result.output
    assert "20-25" in result.output


def test_script_prints_apps_script():
    result = CliRunner().invoke(cli.main, ["script"])
    assert "function doPost(e)" in result.output


def test_settings_save_and_show(settings):
    runner = CliRunner()
    result = runner.invoke(cli.main, ["settings"])
    assert "Not Connected" in result.output

    result = runner.invoke(cli.main, ["settings", "--webhook-url", WEBHOOK])
    assert result.exit_code == 0
    assert "Settings saved!" in result.output
    assert "Connected to Google Sheet" in result.output

    saved = json.loads((settings.home / "settings.json").read_text())
    assert saved["webhook_url"] == WEBHOOK


def test_capture_requires_media(settings):
    result = CliRunner().invoke(cli.main, ["capture"])
    assert result.exit_code == 1


def test_capture_missing_file(settings, tmp_path):
    result = CliRunner().invoke(cli.main, ["capture", "--image", str(tmp_path / "nope.jpg")])
    assert result.exit_code == 1
    assert "file not found" in result.output


def test_capture_yes_saves(settings, card, persister, monkeypatch, card_result):
    connect(settings)
    extractor = use_extractor(monkeypatch, card_result)

    result = CliRunner().invoke(cli.main, ["capture", "--image", card, "--yes"])

    assert result.exit_code == 0, result.output
    assert "Sent to Google Sheet." in result.output
    assert extractor.calls[0]["images"][0].startswith("data:image/jpeg;base64,")
    url, record = persister.sent[0]
    assert url == WEBHOOK
    assert record.first_name == "Jane"
    assert record.contact_frequency == "Every 4 months"


def test_capture_yes_without_webhook(settings, card, persister, monkeypatch, card_result):
    use_extractor(monkeypatch, card_result)
    result = CliRunner().invoke(cli.main, ["capture", "--image", card, "--yes"])
    assert result.exit_code == 1
    assert "connect your Google Sheet" in result.output
    assert persister.sent == []


def test_capture_yes_extraction_failure(settings, card, persister, monkeypatch):
    use_extractor(monkeypatch, ExtractionError("No data extracted"))
    result = CliRunner().invoke(cli.main, ["capture", "--image", card, "--yes"])
    assert result.exit_code == 1
    assert "Failed to process input" in result.output


def test_interactive_edit_then_save(settings, card, persister, monkeypatch, card_result):
    connect(settings)
    use_extractor(monkeypatch, card_result)

    # edit contactFrequency, then save
    user_input = "e\ncontactFrequency\nEvery year\ns\n"
    result = CliRunner().invoke(cli.main, ["capture", "--image", card], input=user_input)

    assert result.exit_code == 0, result.output
    _, record = persister.sent[0]
    assert record.contact_frequency == "Every year"
    assert record.next_contact_due == compute_next_due(record.last_contact, "Every year")


def test_interactive_retry_after_failure(settings, card, persister, monkeypatch, card_result):
    connect(settings)
    extractor = use_extractor(monkeypatch, ExtractionError("empty"), card_result)

    result = CliRunner().invoke(cli.main, ["capture", "--image", card], input="y\nq\n")

    assert result.exit_code == 0, result.output
    assert len(extractor.calls) == 2
    assert "Discarded." in result.output
    assert persister.sent == []


def test_interactive_smart_update(settings, card, persister, monkeypatch, card_result, tmp_path):
    connect(settings)
    note = tmp_path / "note.webm"
    note.write_bytes(b"fake-webm")
    extractor = use_extractor(monkeypatch, card_result, {"phone": "+1 555-0123"})

    user_input = f"u\n\n{note}\ns\n"
    result = CliRunner().invoke(cli.main, ["capture", "--image", card], input=user_input)

    assert result.exit_code == 0, result.output
    assert extractor.calls[1]["prior"].first_name == "Jane"
    assert extractor.calls[1]["audio"].startswith("data:audio/webm;base64,")
    _, record = persister.sent[0]
    assert record.phone == "+1 555-0123"


def test_next_due_past_supported_dates():
    result = CliRunner().invoke(cli.main, ["next-due", "9999-06-01", "Every year"])
    assert result.exit_code == 1
    assert "could not compute a due date" in result.output
    assert "not a valid" not in result.output


def test_interactive_save_prompts_for_webhook(settings, card, persister, monkeypatch, card_result):
    use_extractor(monkeypatch, card_result)

    # save, then webhook URL and a blank view URL at the connection prompts
    user_input = f"s\n{WEBHOOK}\n\n"
    result = CliRunner().invoke(cli.main, ["capture", "--image", card], input=user_input)

    assert result.exit_code == 0, result.output
    url, record = persister.sent[0]
    assert url == WEBHOOK
    assert record.first_name == "Jane"
    assert SettingsStore(settings.home).load().webhook_url == WEBHOOK


def test_interactive_save_blank_webhook_keeps_record(settings, card, persister, monkeypatch, card_result):
    use_extractor(monkeypatch, card_result)

    # blank URL cancels the connection; then connect on the second save
    user_input = f"s\n\ns\n{WEBHOOK}\nhttps://docs.google.com/spreadsheets/d/x\n"
    result = CliRunner().invoke(cli.main, ["capture", "--image", card], input=user_input)

    assert result.exit_code == 0, result.output
    assert "connect your Google Sheet" in result.output
    assert len(persister.sent) == 1
    assert "View: https://docs.google.com/spreadsheets/d/x" in result.output


def test_interactive_save_retry_after_failure(settings, card, monkeypatch, card_result):
    connect(settings)
    use_extractor(monkeypatch, card_result)
    persister = FakePersister(failures=1)
    monkeypatch.setattr(cli, "SheetWebhookClient", lambda **kwargs: persister)

    result = CliRunner().invoke(cli.main, ["capture", "--image", card], input="s\ns\n")

    assert result.exit_code == 0, result.output
    assert "Could not send data to Google Sheet" in result.output
    assert "Sent to Google Sheet." in result.output
    _, record = persister.sent[0]
    assert record.first_name == "Jane"


def test_interactive_smart_update_failure_keeps_record(
    settings, card, persister, monkeypatch, card_result, tmp_path
):
    connect(settings)
    note = tmp_path / "note.webm"
    note.write_bytes(b"fake-webm")
    use_extractor(monkeypatch, card_result, ExtractionError("empty"))

    user_input = f"u\n\n{note}\ns\n"
    result = CliRunner().invoke(cli.main, ["capture", "--image", card], input=user_input)

    assert result.exit_code == 0, result.output
    assert "Could not update contact info. Please try again." in result.output
    _, record = persister.sent[0]
    assert record.first_name == "Jane"
    assert record.company == "Acme Corp"
    assert record.phone == ""


def test_interactive_reset_starts_fresh(settings, card, persister, monkeypatch, card_result):
    connect(settings)
    extractor = use_extractor(monkeypatch, card_result, {"firstName": "Bob"})

    # start over with the same card (no audio), then save
    user_input = f"r\n{card}\n\ns\n"
    result = CliRunner().invoke(cli.main, ["capture", "--image", card], input=user_input)

    assert result.exit_code == 0, result.output
    assert extractor.calls[1]["prior"] is None
    _, record = persister.sent[0]
    assert record.first_name == "Bob"
    assert record.last_name == ""
    assert record.company == ""
    assert record.contact_frequency == "Every 4 months"

    # missing-field split is taken again from the new record
    last_review = result.output.split("REVIEW CONTACT")[-1]
    extracted, missing = last_review.split("\nMissing:")
    assert "First Name: Bob" in extracted
    assert "Last Name" not in extracted
    assert "- Last Name:" in missing
