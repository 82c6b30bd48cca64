# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
import re
import uuid
from dataclasses import dataclass

from mdtranslate.logger import global_logger

# Opening fence: up to three spaces of indentation, then ``` or ~~~ (or longer) and an optional info string
FENCE_OPEN_PATTERN = re.compile(r"^ {0,3}(?P<fence>`{3,}|~{3,})(?P<info>[^\n]*)$")


@dataclass(frozen=True)
class CodeBlockPlaceholder:
    id: int
    original_text: str
    token: str = ""

    @property
    def marker(self) -> str:
        return make_marker(self.token, self.id)


def make_marker(token: str, block_id: int) -> str:
    return f"<ph-{token}-{block_id}>"


def _is_fence_close(line: str, fence: str) -> bool:
    stripped = line.rstrip("\r\n")
    body = stripped.lstrip(" ")
    if len(stripped) - len(body) > 3:
        return False
    body = body.rstrip(" \t")
    return len(body) >= len(fence) and body == fence[0] * len(body)


def find_fenced_code_blocks(text: str) -> list[tuple[int, int]]:
    """
    Locate fenced code regions.

    Returns (start, end) character offsets. A region spans the opening fence line
    through the closing fence line, without the closing line's trailing newline.
    An unterminated fence runs to the end of the text.
    """
    regions = []
    lines = [line + "\n" for line in text.split("\n")]
    lines[-1] = lines[-1][:-1]
    offset = 0
    i = 0
    while i < len(lines):
        line = lines[i]
        match = FENCE_OPEN_PATTERN.match(line.rstrip("\r\n"))
        # a backtick fence may not carry backticks in its info string
        if match and not (match.group("fence")[0] == "`" and "`" in match.group("info")):
            fence = match.group("fence")
            start = offset
            end = None
            offset += len(line)
            i += 1
            while i < len(lines):
                inner = lines[i]
                if _is_fence_close(inner, fence):
                    end = offset + len(inner.rstrip("\r\n"))
                    offset += len(inner)
                    i += 1
                    break
                offset += len(inner)
                i += 1
            if end is None:
                end = len(text.rstrip("\r\n"))
            regions.append((start, end))
            continue
        offset += len(line)
        i += 1
    return regions


class CodeBlockShield:
    """
    Reversibly replaces fenced code blocks with `<ph-{token}-{id}>` markers.

    The token is re-rolled until it does not occur in the document, so a marker can
    never match literal text of the original.
    """

    def __init__(self, logger=global_logger):
        self.logger = logger

    @staticmethod
    def create_token(text: str) -> str:
        while True:
            token = uuid.uuid4().hex[:6]
            if token not in text:
                return token

    def extract(self, text: str) -> tuple[str, list[CodeBlockPlaceholder]]:
        token = self.create_token(text)
        blocks: list[CodeBlockPlaceholder] = []
        parts = []
        last_end = 0
        for start, end in find_fenced_code_blocks(text):
            block = CodeBlockPlaceholder(id=len(blocks), original_text=text[start:end], token=token)
            blocks.append(block)
            parts.append(text[last_end:start])
            parts.append(block.marker)
            last_end = end
        parts.append(text[last_end:])
        if blocks:
            self.logger.debug(f"Shielded {len(blocks)} code blocks")
        return "".join(parts), blocks

    def restore(self, text: str, blocks: list[CodeBlockPlaceholder]) -> str:
        for block in blocks:
            marker = block.marker
            count = text.count(marker)
            if count == 0:
                self.logger.warning(f"Code block placeholder {marker} is missing from the translated text")
                continue
            if count > 1:
                self.logger.warning(f"Code block placeholder {marker} appears {count} times")
            text = text.replace(marker, block.original_text)
        return text


def replace_code_blocks(text: str) -> tuple[str, list[CodeBlockPlaceholder]]:
    return CodeBlockShield().extract(text)


def restore_code_blocks(text: str, blocks: list[CodeBlockPlaceholder]) -> str:
    return CodeBlockShield().restore(text, blocks)
