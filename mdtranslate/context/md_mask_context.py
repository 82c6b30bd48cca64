# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0

from mdtranslate.ir.markdown_document import MarkdownDocument
from mdtranslate.utils.markdown_utils import CodeBlockShield, CodeBlockPlaceholder


class MDMaskCodeBlocksContext:
    def __init__(self, document: MarkdownDocument):
        self.document = document
        self.shield = CodeBlockShield()
        self.blocks: list[CodeBlockPlaceholder] = []

    def __enter__(self):
        content, self.blocks = self.shield.extract(self.document.content.decode())
        self.document.content = content.encode()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.document.content = self.shield.restore(self.document.content.decode(), self.blocks).encode()
