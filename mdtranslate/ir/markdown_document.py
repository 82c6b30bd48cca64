# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
from pathlib import Path
from typing import Self

from mdtranslate.ir.document import Document


class MarkdownDocument(Document):
    """UTF-8 Markdown source. The suffix is always .md, whatever the file was called."""

    def __init__(self, content: bytes, stem: str | None = None, path: Path | None = None):
        super().__init__(suffix=".md", content=content, stem=stem, path=path)

    @classmethod
    def from_path(cls, path: Path | str) -> Self:
        # UnicodeDecodeError for sources that are not UTF-8, OSError when unreadable
        path = Path(path)
        content = path.read_bytes()
        content.decode("utf-8")
        return cls(content=content, stem=path.stem, path=path)

    @classmethod
    def from_bytes(cls, content: bytes, stem: str | None = None) -> Self:
        return cls(content=content, stem=stem)

    @classmethod
    def from_text(cls, text: str, stem: str | None = None) -> Self:
        return cls(content=text.encode("utf-8"), stem=stem)

    def copy(self) -> Self:
        return self.__class__(content=self.content, stem=self.stem, path=self.path)
