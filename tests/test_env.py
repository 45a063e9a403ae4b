"""Tests for environment configuration."""

import os

from jobly.env import DEFAULT_DATABASE_URL, get_database_url, load_env, log_to_file


class TestEnv:
    """Configuration comes from the process environment and .env."""

    def test_default_database_url(self, monkeypatch):
        monkeypatch.delenv("JOBLY_DATABASE_URL", raising=False)
        assert get_database_url() == DEFAULT_DATABASE_URL

    def test_database_url_override(self, monkeypatch):
        monkeypatch.setenv("JOBLY_DATABASE_URL", "postgresql:///jobly")
        assert get_database_url() == "postgresql:///jobly"

    def test_log_to_file_flags(self, monkeypatch):
        monkeypatch.delenv("JOBLY_LOG_TO_FILE", raising=False)
        assert log_to_file() is True
        for value in ("0", "false", "No", " off "):
            monkeypatch.setenv("JOBLY_LOG_TO_FILE", value)
            assert log_to_file() is False

    def test_load_env_reads_dotenv(self, tmp_path, monkeypatch):
        # setenv then delenv so teardown removes whatever load_env sets
        monkeypatch.setenv("JOBLY_TEST_SETTING", "placeholder")
        monkeypatch.delenv("JOBLY_TEST_SETTING")
        monkeypatch.chdir(tmp_path)
        (tmp_path / ".env").write_text("# comment\nJOBLY_TEST_SETTING=from-dotenv\n")

        load_env()

        assert os.environ["JOBLY_TEST_SETTING"] == "from-dotenv"

    def test_load_env_keeps_existing(self, tmp_path, monkeypatch):
        monkeypatch.setenv("JOBLY_TEST_SETTING", "from-shell")
        monkeypatch.chdir(tmp_path)
        (tmp_path / ".env").write_text("JOBLY_TEST_SETTING=from-dotenv\n")

        load_env()

        assert os.environ["JOBLY_TEST_SETTING"] == "from-shell"

    def test_load_env_without_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        load_env()
