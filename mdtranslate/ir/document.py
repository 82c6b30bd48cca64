# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
from pathlib import Path
from typing import Self


class Document:
    def __init__(self, suffix: str, content: bytes, stem: str | None = None, path: Path | None = None):
        self.suffix = suffix
        self.content = content
        self.stem = stem
        self.path = path

    @property
    def name(self) -> str | None:
        if self.stem is None:
            return None
        return f"{self.stem}{self.suffix}"

    @classmethod
    def from_path(cls, path: Path | str) -> Self:
        # OSError (FileNotFoundError included) is left to the caller
        path = Path(path)
        return cls(suffix=path.suffix, content=path.read_bytes(), stem=path.stem, path=path)

    @classmethod
    def from_bytes(cls, content: bytes, suffix: str, stem: str | None = None) -> Self:
        return cls(suffix=suffix, content=content, stem=stem)

    @property
    def text(self) -> str:
        return self.content.decode("utf-8")

    def copy(self) -> Self:
        return self.__class__(suffix=self.suffix, content=self.content, stem=self.stem, path=self.path)
