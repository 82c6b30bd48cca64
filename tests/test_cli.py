"""Tests for the command line driver."""

import io
import json

import pytest

from mdtranslate import __version__, cli
from mdtranslate.agents.agent import ApiFailure
from mdtranslate.translator.status import Pending
from mdtranslate.utils.i18n import t

ENV_VARS = [
    "OPENAI_API_KEY",
    "OPENAI_BASE_URL",
    "MODEL_NAME",
    "TEMPERATURE",
    "FRAGMENT_TOKEN_SIZE",
    "API_CALL_INTERVAL",
    "PROMPT_FILE",
    "GPT_TRANSLATOR_BASE_DIR",
    "HTTPS_PROXY",
    "MDTRANSLATE_LANG",
]


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    """A clean environment with a prompt file and one source document."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    (tmp_path / "prompt.md").write_text("Translate into French.", encoding="utf-8")
    (tmp_path / "doc.md").write_text("Hello\n\nWorld", encoding="utf-8")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    return tmp_path


@pytest.fixture
def fake_agent(make_agent, monkeypatch):
    """Replace the HTTP agent used by the CLI with an in-process fake."""
    agent = make_agent()
    monkeypatch.setattr(cli, "Agent", lambda config: agent)
    return agent


async def translate(*argv):
    ns = cli.build_parser().parse_args(["--lang", "en", "translate", *argv])
    stream = io.StringIO()
    code = await cli.run_translate(ns, stream)
    return code, stream.getvalue()


class TestConfigurationChecks:
    """Test cases for startup validation."""

    @pytest.mark.asyncio
    async def test_all_errors_are_reported_together(self, workspace, monkeypatch):
        """Should list a missing key and a missing prompt file in one report."""
        monkeypatch.delenv("OPENAI_API_KEY")

        code, output = await translate("doc.md", "--prompt-file", "missing-prompt.md")

        assert code == cli.EC_INVALID_INPUT
        assert "OPENAI_API_KEY" in output
        assert "missing-prompt.md" in output

    @pytest.mark.asyncio
    async def test_invalid_temperature(self, workspace):
        """Should reject a temperature outside 0..1."""
        code, output = await translate("doc.md", "-t", "2")

        assert code == cli.EC_INVALID_INPUT
        assert "Temperature" in output

    @pytest.mark.asyncio
    async def test_unparsable_environment_value(self, workspace, monkeypatch):
        """Should report a non-numeric environment setting."""
        monkeypatch.setenv("FRAGMENT_TOKEN_SIZE", "lots")

        code, output = await translate("doc.md")

        assert code == cli.EC_INVALID_INPUT
        assert "FRAGMENT_TOKEN_SIZE" in output

    @pytest.mark.asyncio
    async def test_missing_input_file(self, workspace):
        """Should stop before translating when an input does not exist."""
        code, output = await translate("nope.md")

        assert code == cli.EC_INVALID_INPUT
        assert "nope.md" in output

    @pytest.mark.asyncio
    async def test_malformed_ledger(self, workspace):
        """Should refuse to run with an unreadable completion ledger."""
        (workspace / "dones.json").write_text("{broken", encoding="utf-8")

        code, _ = await translate("doc.md")

        assert code == cli.EC_INVALID_INPUT


class TestTranslateCommand:
    """Test cases for translating documents end to end with a fake agent."""

    @pytest.mark.asyncio
    async def test_writes_output_and_ledger(self, workspace, fake_agent):
        """Should write the translation to the output directory and record it."""
        code, output = await translate("doc.md")

        assert code == cli.EC_OK
        assert (workspace / "output" / "doc_translated.md").read_text(encoding="utf-8") == "HELLO\n\nWORLD"
        dones = json.loads((workspace / "dones.json").read_text(encoding="utf-8"))
        assert dones == [str((workspace / "doc.md").resolve())]
        assert "✅" in output

    @pytest.mark.asyncio
    async def test_in_place_appends_original(self, workspace, fake_agent):
        """Should overwrite the source with translation, two blank lines and the original."""
        code, _ = await translate("doc.md", "--in-place", "--no-ledger")

        assert code == cli.EC_OK
        assert (workspace / "doc.md").read_text(encoding="utf-8") == "HELLO\n\nWORLD\n\n\nHello\n\nWorld"
        assert not (workspace / "dones.json").exists()

    @pytest.mark.asyncio
    async def test_skips_documents_in_ledger(self, workspace, fake_agent):
        """Should not translate a document recorded as done."""
        (workspace / "dones.json").write_text(
            json.dumps([str((workspace / "doc.md").resolve())]), encoding="utf-8"
        )

        code, output = await translate("doc.md")

        assert code == cli.EC_OK
        assert "Skipping" in output
        assert fake_agent.calls == []
        assert not (workspace / "output").exists()

    @pytest.mark.asyncio
    async def test_directory_input(self, workspace, fake_agent):
        """Should translate every Markdown file below a directory in sorted order."""
        docs = workspace / "docs"
        (docs / "sub").mkdir(parents=True)
        (docs / "b.md").write_text("bee", encoding="utf-8")
        (docs / "sub" / "a.md").write_text("ay", encoding="utf-8")
        (docs / "notes.txt").write_text("skip", encoding="utf-8")

        code, _ = await translate("docs", "--no-ledger")

        assert code == cli.EC_OK
        assert fake_agent.calls == ["bee", "ay"]
        assert (workspace / "output" / "a_translated.md").read_text(encoding="utf-8") == "AY"

    @pytest.mark.asyncio
    async def test_base_dir_resolves_relative_inputs(self, workspace, fake_agent, monkeypatch, tmp_path_factory):
        """Should resolve relative inputs against GPT_TRANSLATOR_BASE_DIR."""
        base = tmp_path_factory.mktemp("base")
        (base / "remote.md").write_text("far away", encoding="utf-8")
        monkeypatch.setenv("GPT_TRANSLATOR_BASE_DIR", str(base))

        code, _ = await translate("remote.md", "--no-ledger")

        assert code == cli.EC_OK
        assert fake_agent.calls == ["far away"]

    @pytest.mark.asyncio
    async def test_service_error_exit_code(self, workspace, make_agent, monkeypatch):
        """Should exit with the service error code and write nothing."""
        agent = make_agent(fail=lambda text: ApiFailure(message="Incorrect API key", code="invalid_api_key"))
        monkeypatch.setattr(cli, "Agent", lambda config: agent)

        code, output = await translate("doc.md")

        assert code == cli.EC_LLM_ERROR
        assert "Incorrect API key" in output
        assert not (workspace / "output").exists()
        assert not (workspace / "dones.json").exists()

    @pytest.mark.asyncio
    async def test_non_utf8_source_is_invalid_input(self, workspace, fake_agent):
        """Should report an undecodable source and exit with the invalid input code."""
        (workspace / "bad.md").write_bytes(b"Hello \xff\xfe")

        code, output = await translate("bad.md", "--no-ledger")

        assert code == cli.EC_INVALID_INPUT
        assert "not valid UTF-8" in output
        assert fake_agent.calls == []
        assert not (workspace / "output").exists()

    def test_non_utf8_source_exit_status(self, workspace, fake_agent):
        """Should exit through main with the invalid input code, not a traceback."""
        (workspace / "bad.md").write_bytes(b"Hello \xff\xfe")

        with pytest.raises(SystemExit) as exc_info:
            cli.main(["--no-env", "--lang", "en", "translate", "bad.md", "--no-ledger"])

        assert exc_info.value.code == cli.EC_INVALID_INPUT

    @pytest.mark.asyncio
    async def test_jsonl_progress(self, workspace, fake_agent):
        """Should print one JSON event per line."""
        code, output = await translate("doc.md", "--progress", "jsonl", "--no-ledger")

        events = [json.loads(line)["event"] for line in output.splitlines()]
        assert code == cli.EC_OK
        assert events[0] == "document_start"
        assert events[-1] == "document_done"
        assert "status" in events


class TestStatusLine:
    """Test cases for terminal status rendering."""

    def test_rewrites_previous_line(self):
        """Should clear the previous status line before printing the next one."""
        stream = io.StringIO()
        line = cli.StatusLine(stream=stream)

        line(Pending())
        line(Pending("Bon\njour"))

        assert stream.getvalue() == "⏳\n" + cli.CLEAR_PREVIOUS_LINE + "⚡ Bon jour\n"


class TestMain:
    """Test cases for the entry point."""

    def test_version(self, capsys):
        """Should print the package version."""
        cli.main(["--no-env", "version"])

        assert capsys.readouterr().out.strip() == __version__

    def test_no_arguments_prints_help(self, capsys):
        """Should print usage and exit successfully without arguments."""
        with pytest.raises(SystemExit) as exc_info:
            cli.main([])

        assert exc_info.value.code == cli.EC_OK
        assert "usage" in capsys.readouterr().out


class TestMessages:
    """Test cases for localized CLI messages."""

    def test_chinese_message(self):
        """Should format the requested language."""
        assert t("translating", lang="zh", path="a.md") == "正在翻译 a.md..."

    def test_unknown_language_falls_back_to_english(self):
        """Should use English for unsupported languages."""
        assert t("file_not_found", lang="fr", path="a.md") == "File not found: a.md"

    def test_missing_placeholder_keeps_template(self):
        """Should return the raw template when arguments are missing."""
        assert t("file_not_found", lang="en") == "File not found: {path}"
