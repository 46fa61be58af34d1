"""Unit tests for joddit.seed, joddit.config and joddit.log."""

import json
import logging
import textwrap
from pathlib import Path

import pytest

from joddit.config import Settings
from joddit.log import setup_logging
from joddit.seed import load_default_notes, parse_seed


# ---------------------------------------------------------------------------
# Seed notes
# ---------------------------------------------------------------------------


class TestSeed:
    def test_parse_seed(self):
        notes = parse_seed(
            textwrap.dedent("""\
                - title: One
                  content: first
                  category: Ideas
                  pinned: true
                  age_days: 1
                - title: Two
            """),
            clock=lambda: 100_000_000,
        )
        assert [n.title for n in notes] == ["One", "Two"]
        assert notes[0].updated_at == 100_000_000 - 86_400_000
        assert notes[0].is_pinned is True
        assert notes[1].category == "Recent"
        assert notes[1].updated_at == 100_000_000
        assert all(n.user_id is None and not n.is_synced for n in notes)

    def test_empty_document(self):
        assert parse_seed("") == []

    def test_bundled_defaults(self):
        notes = load_default_notes(clock=lambda: 1_000_000_000)
        assert {n.title for n in notes} == {"Product Vision", "Grocery List"}
        assert len({n.id for n in notes}) == len(notes)

    def test_ids_differ_between_installs(self):
        first = {n.id for n in load_default_notes()}
        second = {n.id for n in load_default_notes()}
        assert first.isdisjoint(second)


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


class TestSettings:
    def test_defaults(self, monkeypatch):
        for name in [
            "JODDIT_DATA_DIR",
            "JODDIT_DATABASE_URL",
            "JODDIT_DEEPGRAM_API_KEY",
            "JODDIT_SYNC_INTERVAL",
            "JODDIT_LOG_LEVEL",
            "JODDIT_LOG_JSON",
        ]:
            monkeypatch.delenv(name, raising=False)
        settings = Settings.from_env()
        assert settings.data_dir == Path("~/.joddit").expanduser()
        assert settings.database_url == ""
        assert settings.sync_interval == 5.0
        assert settings.log_json is False

    def test_from_environment(self, monkeypatch, tmp_path: Path):
        monkeypatch.setenv("JODDIT_DATA_DIR", str(tmp_path))
        monkeypatch.setenv("JODDIT_DATABASE_URL", "postgres://h/db")
        monkeypatch.setenv("JODDIT_SYNC_INTERVAL", "2.5")
        monkeypatch.setenv("JODDIT_LOG_JSON", "yes")
        settings = Settings.from_env()
        assert settings.data_dir == tmp_path
        assert settings.database_url == "postgres://h/db"
        assert settings.sync_interval == 2.5
        assert settings.log_json is True


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


class TestLogging:
    def test_json_lines(self, capsys):
        setup_logging("INFO", json_format=True)
        logging.getLogger("joddit.test").info("synced")
        line = capsys.readouterr().out.strip().splitlines()[-1]
        record = json.loads(line)
        assert record["message"] == "synced"
        assert record["levelname"] == "INFO"
        assert record["name"] == "joddit.test"

    def test_text_lines(self, capsys):
        setup_logging("debug")
        logging.getLogger("joddit.test").debug("tick")
        assert "[joddit.test] tick" in capsys.readouterr().out
        assert logging.getLogger().level == logging.DEBUG
