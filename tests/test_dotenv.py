"""Unit tests for .env loading."""

import os

from mdtranslate.utils.dotenv import load_env_file, parse_env


class TestParseEnv:
    """Test cases for .env parsing."""

    def test_parses_common_forms(self):
        """Should handle export prefixes, quotes, comments and blank lines."""
        values = parse_env([
            "# settings",
            "",
            "export OPENAI_API_KEY=sk-123",
            'PROMPT_FILE="prompts/fr.md"',
            "MODEL_NAME=4 # the large one",
            "LITERAL='${NOT_EXPANDED}'",
            "no equals sign",
        ])

        assert values == {
            "OPENAI_API_KEY": "sk-123",
            "PROMPT_FILE": "prompts/fr.md",
            "MODEL_NAME": "4",
            "LITERAL": "${NOT_EXPANDED}",
        }

    def test_expands_earlier_keys(self):
        """Should substitute references to keys defined above."""
        values = parse_env(["BASE=/srv/docs", "PROMPT_FILE=${BASE}/prompt.md"])

        assert values["PROMPT_FILE"] == "/srv/docs/prompt.md"


class TestLoadEnvFile:
    """Test cases for applying a .env file to the environment."""

    def test_existing_variables_win(self, tmp_path, monkeypatch):
        """Should not override variables that are already set."""
        monkeypatch.setenv("MODEL_NAME", "3")
        monkeypatch.setenv("TEMPERATURE", "unset")
        monkeypatch.delenv("TEMPERATURE")
        env_file = tmp_path / ".env"
        env_file.write_text("MODEL_NAME=4\nTEMPERATURE=0.5\n", encoding="utf-8")

        used, keys = load_env_file(env_file)

        assert used == str(env_file)
        assert keys == ["TEMPERATURE"]
        assert os.environ["MODEL_NAME"] == "3"
        assert os.environ["TEMPERATURE"] == "0.5"

    def test_override(self, tmp_path, monkeypatch):
        """Should replace existing variables when asked to."""
        monkeypatch.setenv("MODEL_NAME", "3")
        env_file = tmp_path / ".env"
        env_file.write_text("MODEL_NAME=4\n", encoding="utf-8")

        load_env_file(env_file, override=True)

        assert os.environ["MODEL_NAME"] == "4"

    def test_env_file_hint(self, tmp_path, monkeypatch):
        """Should read the file named by MDTRANSLATE_ENV_FILE."""
        monkeypatch.setenv("API_CALL_INTERVAL", "unset")
        monkeypatch.delenv("API_CALL_INTERVAL")
        env_file = tmp_path / "custom.env"
        env_file.write_text("API_CALL_INTERVAL=2\n", encoding="utf-8")
        monkeypatch.setenv("MDTRANSLATE_ENV_FILE", str(env_file))

        used, keys = load_env_file()

        assert used == str(env_file)
        assert keys == ["API_CALL_INTERVAL"]

    def test_missing_file(self, tmp_path):
        """Should report that nothing was loaded."""
        assert load_env_file(tmp_path / "absent.env") == (None, [])
