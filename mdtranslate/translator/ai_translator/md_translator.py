# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
import asyncio
from dataclasses import dataclass
from typing import Self

from mdtranslate.agents.agent import Agent, ApiOptions, ApiSuccess, TranslationServiceError
from mdtranslate.context.md_mask_context import MDMaskCodeBlocksContext
from mdtranslate.ir.markdown_document import MarkdownDocument
from mdtranslate.translator.ai_translator.base import AiTranslatorConfig, AiTranslator
from mdtranslate.translator.status import Done, Error, OnStatus, Pending, Status, combine_statuses
from mdtranslate.utils.markdown_splitter import split_string_at_blank_lines
from mdtranslate.utils.markdown_utils import CodeBlockPlaceholder, CodeBlockShield

FRAGMENT_JOINER = "\n\n"


def _ignore_status(status: Status) -> None:
    pass


def fragment_text(text: str, budget: int) -> list[str]:
    fragments = split_string_at_blank_lines(text, budget)
    # no blank line anywhere (e.g. a single shielded code block)
    return [text] if fragments is None else fragments


def shield_and_fragment(document: str, budget: int) -> tuple[list[str], list[CodeBlockPlaceholder]]:
    shielded, blocks = CodeBlockShield().extract(document)
    return fragment_text(shielded, budget), blocks


def unshield(translated_text: str, blocks: list[CodeBlockPlaceholder]) -> str:
    return CodeBlockShield().restore(translated_text, blocks)


@dataclass(kw_only=True)
class MDTranslatorConfig(AiTranslatorConfig):
    ...


class MDTranslator(AiTranslator):
    def __init__(self, config: MDTranslatorConfig, agent: Agent | None = None):
        super().__init__(config=config, agent=agent)
        if config.fragment_size <= 0:
            raise ValueError(f"fragment_size must be positive, got {config.fragment_size}")
        self.fragment_size = config.fragment_size

    async def translate_one(self, text: str, instruction: str, options: ApiOptions, on_status: OnStatus) -> str:
        """
        Translate one fragment. An oversized fragment is bisected at a blank line and
        both halves are translated as siblings; a fragment that cannot be split is
        returned untranslated. Other failures raise TranslationServiceError.

        The final Done status is left to translate_multiple.
        """
        on_status(Pending())
        result = await self.agent.call_api(text, instruction, options, lambda token: on_status(Pending(token)))
        if isinstance(result, ApiSuccess):
            return result.translation

        if result.is_size_related:
            halves = split_string_at_blank_lines(text, 0)
            if halves is None:
                # perhaps code blocks only
                self.logger.warning(f"Fragment of {len(text)} chars cannot be split further, keeping the original text")
                return text
            self.logger.info("Split: " + ", ".join(f"{len(s)}:{s[:20]!r}" for s in halves))
            return await self.translate_multiple(halves, instruction, options, on_status)

        on_status(Error(result.message))
        raise TranslationServiceError(result.message, result.code)

    async def translate_multiple(self, fragments: list[str], instruction: str, options: ApiOptions,
                                 on_status: OnStatus) -> str:
        statuses: list[Status] = [Pending() for _ in fragments]
        on_status(Pending())

        def handle_new_status(index: int) -> OnStatus:
            def handle(status: Status):
                statuses[index] = status
                on_status(combine_statuses(statuses))

            return handle

        tasks = [
            asyncio.create_task(self.translate_one(fragment, instruction, options, handle_new_status(index)))
            for index, fragment in enumerate(fragments)
        ]
        try:
            results = await asyncio.gather(*tasks)
        except Exception:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        final_result = FRAGMENT_JOINER.join(results)
        on_status(Done(final_result))
        return final_result

    async def translate_all(self, fragments: list[str], instruction: str, options: ApiOptions | None = None,
                            on_status: OnStatus | None = None) -> str:
        return await self.translate_multiple(fragments, instruction, options or self.options,
                                             on_status or _ignore_status)

    async def translate_async(self, document: MarkdownDocument, instruction: str,
                              on_status: OnStatus | None = None) -> Self:
        self.logger.info("Translating markdown")
        with MDMaskCodeBlocksContext(document):
            fragments = fragment_text(document.content.decode(), self.fragment_size)
            self.logger.info(f"Markdown split into {len(fragments)} fragments")
            document.content = (await self.translate_all(fragments, instruction, on_status=on_status)).encode()
        self.logger.info("Translation completed")
        return self
