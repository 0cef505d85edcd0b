"""Tests for the dotenv auto-loader."""

from __future__ import annotations

import os

from video_timeline_mcp.dotenv import load_dotenv, parse_dotenv


class TestParseDotenv:
    """Unit tests for the .env file parser."""

    def test_basic_key_value(self, tmp_path):
        env = tmp_path / ".env"
        env.write_text("TIMELINE_DEFAULT_VOICE=Puck\n")
        assert parse_dotenv(env) == {"TIMELINE_DEFAULT_VOICE": "Puck"}

    def test_quoted_values(self, tmp_path):
        env = tmp_path / ".env"
        env.write_text("A=\"double quoted\"\nB='single'\n")
        assert parse_dotenv(env) == {"A": "double quoted", "B": "single"}

    def test_comments_blanks_and_malformed(self, tmp_path):
        env = tmp_path / ".env"
        env.write_text("# comment\n\nNO_EQUALS\nKEY=val\n  # indented comment\n")
        assert parse_dotenv(env) == {"KEY": "val"}

    def test_value_with_equals(self, tmp_path):
        env = tmp_path / ".env"
        env.write_text("URL=https://host?a=1&b=2\n")
        assert parse_dotenv(env) == {"URL": "https://host?a=1&b=2"}

    def test_export_prefix_and_spacing(self, tmp_path):
        env = tmp_path / ".env"
        env.write_text("export GEMINI_API_KEY=abc123\n  TIMELINE_PAUSE_PADDING  =  1.0  \n")
        assert parse_dotenv(env) == {"GEMINI_API_KEY": "abc123", "TIMELINE_PAUSE_PADDING": "1.0"}

    def test_missing_file(self, tmp_path):
        assert parse_dotenv(tmp_path / "nonexistent") == {}


class TestLoadDotenv:
    """Unit tests for env injection."""

    def test_injects_unset_vars(self, tmp_path, monkeypatch):
        monkeypatch.setenv("_TEST_TIMELINE_VAR", "")
        env = tmp_path / ".env"
        env.write_text("_TEST_TIMELINE_VAR=hello\n")

        injected = load_dotenv(env)

        assert os.environ["_TEST_TIMELINE_VAR"] == "hello"
        assert injected == {"_TEST_TIMELINE_VAR": "hello"}

    def test_does_not_override_existing(self, tmp_path, monkeypatch):
        monkeypatch.setenv("_TEST_EXISTING", "original")
        env = tmp_path / ".env"
        env.write_text("_TEST_EXISTING=overridden\n")

        assert load_dotenv(env) == {}
        assert os.environ["_TEST_EXISTING"] == "original"

    def test_overrides_self_placeholder(self, tmp_path, monkeypatch):
        """GIVEN an unresolved ${VAR} placeholder from the MCP host THEN the file wins."""
        monkeypatch.setenv("_TEST_PLACEHOLDER", "${_TEST_PLACEHOLDER:-}")
        env = tmp_path / ".env"
        env.write_text("_TEST_PLACEHOLDER=from-config\n")

        assert load_dotenv(env) == {"_TEST_PLACEHOLDER": "from-config"}

    def test_missing_file_returns_empty(self, tmp_path):
        assert load_dotenv(tmp_path / "missing") == {}
