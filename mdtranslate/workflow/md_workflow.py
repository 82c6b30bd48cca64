# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Self

from mdtranslate.agents.agent import Agent
from mdtranslate.ir.markdown_document import MarkdownDocument
from mdtranslate.logger import global_logger
from mdtranslate.translator.ai_translator.md_translator import MDTranslatorConfig, MDTranslator
from mdtranslate.translator.status import OnStatus

# translation, two blank lines, then the source document
ORIGINAL_SEPARATOR = "\n\n\n"


@dataclass(kw_only=True)
class MarkdownWorkflowConfig:
    translator_config: MDTranslatorConfig
    logger: logging.Logger = global_logger


class MarkdownWorkflow:
    def __init__(self, config: MarkdownWorkflowConfig, agent: Agent | None = None):
        self.config = config
        self.logger = config.logger
        self.agent = agent
        self.document_original: MarkdownDocument | None = None
        self.document_translated: MarkdownDocument | None = None

    def read_path(self, path: Path | str) -> Self:
        self.document_original = MarkdownDocument.from_path(path)
        self.document_translated = None
        return self

    def read_text(self, text: str, stem: str | None = None) -> Self:
        self.document_original = MarkdownDocument.from_text(text, stem=stem)
        self.document_translated = None
        return self

    async def translate_async(self, instruction: str, on_status: OnStatus | None = None) -> Self:
        if self.document_original is None:
            raise RuntimeError("File has not been read yet. Call read_path or read_text first.")
        translator = MDTranslator(self.config.translator_config, agent=self.agent)
        document = self.document_original.copy()
        try:
            await translator.translate_async(document, instruction, on_status)
        finally:
            if self.agent is None:
                await translator.aclose()
        self.document_translated = document
        return self

    def export_to_markdown(self, append_original: bool = False) -> str:
        if self.document_translated is None:
            raise RuntimeError("Document has not been translated yet. Call translate_async first.")
        content = self.document_translated.text
        if append_original:
            content = content + ORIGINAL_SEPARATOR + self.document_original.text
        return content

    def save_as_markdown(self, output_path: Path | str, append_original: bool = False) -> Path:
        output_path = Path(output_path)
        content = self.export_to_markdown(append_original=append_original)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(content, encoding="utf-8")
        self.logger.info(f"Saved {output_path}")
        return output_path
