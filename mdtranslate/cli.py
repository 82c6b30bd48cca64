# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
import argparse
import asyncio
import json
import os
import sys
import time
from pathlib import Path
from typing import Any, TextIO

from mdtranslate.agents.agent import Agent, AgentConfig, TranslationServiceError, resolve_model_shorthand
from mdtranslate.logger import global_logger, set_verbose
from mdtranslate.translator import default_params
from mdtranslate.translator.ai_translator.md_translator import MDTranslatorConfig
from mdtranslate.translator.status import Status, status_to_text
from mdtranslate.utils.dotenv import load_env_file
from mdtranslate.utils.i18n import t
from mdtranslate.utils.ledger import CompletionLedger
from mdtranslate.workflow.md_workflow import MarkdownWorkflow, MarkdownWorkflowConfig

# Exit codes for orchestration environments
EC_OK = 0
EC_INVALID_INPUT = 10
EC_LLM_ERROR = 30
EC_EXPORT_ERROR = 40

CLEAR_PREVIOUS_LINE = "\x1b[1A\x1b[2K"


class StatusLine:
    """Keeps the composite translation status on a single terminal line."""

    def __init__(self, progress: str = "none", stream: TextIO | None = None):
        self.progress = progress
        self.stream = stream or sys.stdout
        self._printed = False

    def __call__(self, status: Status):
        text = status_to_text(status)
        if self.progress == "jsonl":
            _emit_to(self.stream, "status", {"text": text})
            return
        if self._printed:
            self.stream.write(CLEAR_PREVIOUS_LINE)
        self.stream.write(text + "\n")
        self.stream.flush()
        self._printed = True


def _emit_to(stream: TextIO, event: str, data: dict[str, Any] | None = None):
    payload = {"event": event, "ts": time.time()}
    if data:
        payload.update(data)
    stream.write(json.dumps(payload, ensure_ascii=False) + "\n")
    stream.flush()


def _env_value(name: str, cast, default):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ValueError(f"Invalid value for {name}: {raw!r}")


def _resolve_settings(ns: argparse.Namespace) -> dict:
    # command line first, then environment, then defaults
    return {
        "api_key": ns.api_key or os.getenv("OPENAI_API_KEY"),
        "base_url": ns.base_url or os.getenv("OPENAI_BASE_URL") or default_params["base_url"],
        "model": resolve_model_shorthand(ns.model or os.getenv("MODEL_NAME") or default_params["model"]),
        "temperature": ns.temperature if ns.temperature is not None
        else _env_value("TEMPERATURE", float, default_params["temperature"]),
        "fragment_size": ns.fragment_size if ns.fragment_size is not None
        else _env_value("FRAGMENT_TOKEN_SIZE", int, default_params["fragment_size"]),
        "api_call_interval": ns.interval if ns.interval is not None
        else _env_value("API_CALL_INTERVAL", float, default_params["api_call_interval"]),
        "prompt_file": Path(ns.prompt_file or os.getenv("PROMPT_FILE") or default_params["prompt_file"]),
        "https_proxy": os.getenv("HTTPS_PROXY"),
    }


def _check_configuration(settings: dict, lang: str) -> list[str]:
    errors = []
    if not settings["api_key"]:
        errors.append(t("missing_api_key", lang=lang))
    if not settings["prompt_file"].is_file():
        errors.append(t("missing_prompt_file", lang=lang, path=str(settings["prompt_file"].resolve())))
    if not 0 <= settings["temperature"] <= 1:
        errors.append(t("invalid_temperature", lang=lang, value=settings["temperature"]))
    if settings["fragment_size"] <= 0:
        errors.append(t("invalid_fragment_size", lang=lang, value=settings["fragment_size"]))
    return errors


def _collect_files(inputs: list[str], base_dir: Path) -> tuple[list[Path], list[Path]]:
    files: list[Path] = []
    missing: list[Path] = []
    for item in inputs:
        path = Path(item)
        if not path.is_absolute():
            path = base_dir / path
        if path.is_dir():
            files.extend(sorted(p for p in path.rglob("*.md") if p.is_file()))
        elif path.is_file():
            files.append(path)
        else:
            missing.append(path)
    return files, missing


def _output_path(input_path: Path, ns: argparse.Namespace) -> Path:
    if ns.in_place:
        return input_path
    return Path(ns.out_dir) / f"{input_path.stem}_translated.md"


async def run_translate(ns: argparse.Namespace, stream: TextIO | None = None) -> int:
    stream = stream or sys.stdout
    lang = ns.lang

    def _print(message: str):
        if ns.progress != "jsonl":
            stream.write(message + "\n")
            stream.flush()

    def _emit(event: str, data: dict[str, Any] | None = None):
        if ns.progress == "jsonl":
            _emit_to(stream, event, data)

    try:
        settings = _resolve_settings(ns)
    except ValueError as e:
        _emit("error", {"stage": "config", "error": str(e)})
        _print(f"{t('config_errors', lang=lang)}\n{e}")
        return EC_INVALID_INPUT

    errors = _check_configuration(settings, lang)
    if errors:
        _emit("error", {"stage": "config", "error": errors})
        _print(t("config_errors", lang=lang) + "\n" + "\n".join(errors))
        return EC_INVALID_INPUT

    base_dir = Path(os.getenv("GPT_TRANSLATOR_BASE_DIR") or Path.cwd())
    files, missing = _collect_files(ns.input, base_dir)
    if missing:
        for path in missing:
            _print(t("file_not_found", lang=lang, path=str(path)))
        _emit("error", {"stage": "input", "error": [str(p) for p in missing]})
        return EC_INVALID_INPUT
    if not files:
        _print(t("no_input_files", lang=lang, paths=", ".join(ns.input)))
        return EC_INVALID_INPUT

    ledger = None
    if not ns.no_ledger:
        ledger = CompletionLedger(ns.ledger)
        try:
            ledger.load()
        except (ValueError, OSError) as e:
            _emit("error", {"stage": "ledger", "error": str(e)})
            _print(t("ledger_invalid", lang=lang, path=ns.ledger, error=str(e)))
            return EC_INVALID_INPUT

    try:
        instruction = settings["prompt_file"].read_text(encoding="utf-8")
    except OSError as e:
        _print(t("missing_prompt_file", lang=lang, path=str(settings["prompt_file"])))
        _emit("error", {"stage": "prompt", "error": str(e)})
        return EC_INVALID_INPUT

    translator_config = MDTranslatorConfig(
        base_url=settings["base_url"],
        api_key=settings["api_key"],
        model_id=settings["model"],
        temperature=settings["temperature"],
        fragment_size=settings["fragment_size"],
        timeout=ns.timeout,
        api_call_interval=settings["api_call_interval"],
        https_proxy=settings["https_proxy"],
    )
    agent_config = AgentConfig(
        base_url=translator_config.base_url,
        api_key=translator_config.api_key,
        timeout=translator_config.timeout,
        api_call_interval=translator_config.api_call_interval,
        https_proxy=translator_config.https_proxy,
    )

    async with Agent(agent_config) as agent:
        for file_path in files:
            identifier = str(file_path.resolve())
            if ledger is not None and identifier in ledger:
                _print(t("already_done", lang=lang, path=str(file_path)))
                _emit("document_skipped", {"path": identifier})
                continue

            _print(t("translating", lang=lang, path=str(file_path)) + "\n")
            _print(t("model_info", lang=lang, model=settings["model"], temperature=settings["temperature"]) + "\n\n")
            _emit("document_start", {"path": identifier, "model": settings["model"]})

            workflow = MarkdownWorkflow(MarkdownWorkflowConfig(translator_config=translator_config), agent=agent)
            try:
                workflow.read_path(file_path)
            except UnicodeDecodeError as e:
                _print(t("invalid_encoding", lang=lang, path=str(file_path), error=str(e)))
                _emit("error", {"stage": "read", "path": identifier, "error": str(e)})
                return EC_INVALID_INPUT
            except OSError as e:
                _print(t("file_not_found", lang=lang, path=str(file_path)))
                _emit("error", {"stage": "read", "path": identifier, "error": str(e)})
                return EC_INVALID_INPUT

            try:
                await workflow.translate_async(instruction, on_status=StatusLine(ns.progress, stream))
            except TranslationServiceError as e:
                global_logger.error(f"Translation of {file_path} failed: {e}")
                _print(t("translation_failed", lang=lang, path=str(file_path), error=str(e)))
                _emit("error", {"stage": "translate", "path": identifier, "error": str(e)})
                return EC_LLM_ERROR

            output_path = _output_path(file_path, ns)
            try:
                workflow.save_as_markdown(output_path, append_original=ns.in_place)
                if ledger is not None:
                    ledger.add(identifier)
            except OSError as e:
                _print(t("write_failed", lang=lang, path=str(output_path), error=str(e)))
                _emit("error", {"stage": "export", "path": str(output_path), "error": str(e)})
                return EC_EXPORT_ERROR

            _print("\n" + t("translation_done", lang=lang, path=str(output_path)))
            _emit("document_done", {"path": identifier, "output": str(output_path.resolve())})
    return EC_OK


def _add_translate_subparser(subparsers: argparse._SubParsersAction) -> None:
    sp = subparsers.add_parser(
        "translate",
        help="Translate Markdown files",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    sp.add_argument("input", nargs="+", help="Markdown files or directories (searched recursively for *.md)")
    sp.add_argument("-m", "--model", help="Model name or shorthand 3, 4, 4large; defaults to MODEL_NAME or 3")
    sp.add_argument("-t", "--temperature", type=float, help="Temperature; defaults to TEMPERATURE or 0.1")
    sp.add_argument("-f", "--fragment-size", type=int,
                    help="Fragment size in tokens; defaults to FRAGMENT_TOKEN_SIZE or 2048")
    sp.add_argument("-i", "--interval", type=float,
                    help="Minimum seconds between API calls; defaults to API_CALL_INTERVAL or 0")
    sp.add_argument("--prompt-file", help="Instruction prompt file; defaults to PROMPT_FILE or prompt.md")
    sp.add_argument("--base-url", help="LLM API base URL; defaults to OPENAI_BASE_URL")
    sp.add_argument("--api-key", help="LLM API key; defaults to OPENAI_API_KEY")
    sp.add_argument("--timeout", type=int, default=default_params["timeout"], help="Read timeout (seconds)")
    sp.add_argument("--out-dir", default="output", help="Output directory")
    sp.add_argument("--in-place", action="store_true",
                    help="Overwrite each source file with its translation followed by the original")
    sp.add_argument("--ledger", default=default_params["ledger"], help="Completion ledger (JSON list of done files)")
    sp.add_argument("--no-ledger", action="store_true", help="Do not read or update the completion ledger")
    sp.add_argument("--progress", choices=["none", "jsonl"], default="none", help="Emit progress events")
    sp.set_defaults(cmd="translate")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mdtranslate",
        description="mdtranslate: translate long Markdown documents with an OpenAI-compatible API",
        epilog=(
            "Examples:\n"
            "  mdtranslate translate docs/intro.md -m 4 -f 1024\n"
            "  mdtranslate translate docs/ --in-place --ledger dones.json\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="cmd")
    _add_translate_subparser(subparsers)

    ver = subparsers.add_parser("version", help="Show version")
    ver.set_defaults(cmd="version")

    parser.add_argument(
        "--env-file", help="Load environment variables from file (default: ./.env)", default=None
    )
    parser.add_argument(
        "--no-env", action="store_true", help="Do not auto-load .env from current directory"
    )
    parser.add_argument(
        "--lang", choices=["en", "zh"], default=os.getenv("MDTRANSLATE_LANG", "en"),
        help="Language for CLI messages (default: en)"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug logs")
    return parser


def main(argv: list[str] | None = None):
    parser = build_parser()
    argv = sys.argv[1:] if argv is None else argv

    # No-arg hint
    if not argv:
        parser.print_help()
        sys.exit(EC_OK)

    args = parser.parse_args(argv)
    set_verbose(args.verbose)

    if not args.no_env:
        env_path_used, loaded_keys = load_env_file(args.env_file)
        if env_path_used:
            global_logger.debug(f"Loaded {len(loaded_keys)} variables from {env_path_used}")

    if args.cmd == "version":
        from mdtranslate import __version__
        print(__version__)
        return

    if args.cmd == "translate":
        sys.exit(asyncio.run(run_translate(args)))

    # Unknown / fallthrough
    parser.print_help()
    sys.exit(1)


if __name__ == "__main__":
    main()
