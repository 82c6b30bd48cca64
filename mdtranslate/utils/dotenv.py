# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Iterable, List, Mapping, Optional

from mdtranslate.logger import global_logger

ENV_FILE_HINT = "MDTRANSLATE_ENV_FILE"
# ${NAME} references inside unquoted or double-quoted values
_REFERENCE_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


def _expand(value: str, known: Mapping[str, str]) -> str:
    return _REFERENCE_PATTERN.sub(lambda m: known.get(m.group(1), os.environ.get(m.group(1), "")), value)


def parse_env(lines: Iterable[str]) -> dict[str, str]:
    """
    Parse KEY=VALUE lines of a .env file.

    `export` prefixes, comments and blank lines are skipped. Single-quoted values are
    taken literally; other values may reference earlier keys or the environment
    as ${NAME} and lose a trailing ` # comment`.
    """
    values: dict[str, str] = {}
    for raw in lines:
        line = raw.strip()
        if line.lower().startswith("export "):
            line = line[7:].lstrip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = (part.strip() for part in line.split("=", 1))
        if len(value) >= 2 and value[0] == value[-1] == "'":
            values[key] = value[1:-1]
            continue
        if len(value) >= 2 and value[0] == value[-1] == '"':
            value = value[1:-1]
        elif " #" in value:
            value = value.split(" #", 1)[0].rstrip()
        values[key] = _expand(value, values)
    return values


def resolve_env_path(path: str | Path | None = None) -> Path:
    if path is not None:
        return Path(path)
    hint = os.getenv(ENV_FILE_HINT)
    return Path(hint) if hint else Path.cwd() / ".env"


def load_env_file(path: str | Path | None = None, *, override: bool = False) -> tuple[Optional[str], List[str]]:
    """
    Load environment variables from a .env file ($MDTRANSLATE_ENV_FILE or ./.env by default).

    Variables already present in the environment win unless override is set.
    Returns (path_used, loaded_keys); path_used is None when nothing was read.
    """
    candidate = resolve_env_path(path)
    if not candidate.is_file():
        return None, []
    try:
        content = candidate.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        global_logger.warning(f"Ignoring unreadable env file {candidate}: {e}")
        return None, []

    loaded = []
    for key, value in parse_env(content.splitlines()).items():
        if override or key not in os.environ:
            os.environ[key] = value
            loaded.append(key)
    return str(candidate), loaded
