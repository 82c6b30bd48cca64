# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
import json
from pathlib import Path

from mdtranslate.logger import global_logger


class CompletionLedger:
    """
    Persisted set of documents that are already fully translated.

    Stored as a JSON array of strings so a batch run can be resumed. Every `add`
    is written through to disk immediately.
    """

    def __init__(self, path: Path | str, logger=global_logger):
        self.path = Path(path)
        self.logger = logger
        self._dones: list[str] = []

    def load(self) -> "CompletionLedger":
        if not self.path.exists():
            self.logger.debug(f"No completion ledger at {self.path}, starting empty")
            self._dones = []
            return self
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "[]")
        except json.JSONDecodeError as e:
            raise ValueError(f"{self.path} is not valid JSON: {e}") from e
        if not isinstance(data, list) or not all(isinstance(item, str) for item in data):
            raise ValueError(f"{self.path} must contain a JSON array of strings")
        self._dones = data
        return self

    def __contains__(self, identifier) -> bool:
        return str(identifier) in self._dones

    def __len__(self) -> int:
        return len(self._dones)

    def add(self, identifier) -> None:
        identifier = str(identifier)
        if identifier in self._dones:
            return
        self._dones.append(identifier)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self._dones, ensure_ascii=False, indent=2), encoding="utf-8")
