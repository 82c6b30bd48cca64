# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
import math
import re
from typing import List

# One or more consecutive blank lines (empty or whitespace-only), LF or CRLF
BLANK_LINES_PATTERN = re.compile(r"\r?\n(?:[ \t]*\r?\n)+")


def count_tokens(text: str) -> int:
    """
    Approximate token count.

    ASCII characters count a quarter token each (rounded up), any other character
    counts as a full token, which keeps CJK text on the safe side.
    """
    ascii_chars = 0
    other_chars = 0
    for char in text:
        if ord(char) < 128:
            ascii_chars += 1
        else:
            other_chars += 1
    return math.ceil(ascii_chars / 4) + other_chars


class MarkdownFragmenter:
    def __init__(self, budget: int = 2048):
        """
        Split shielded Markdown into fragments at blank lines

        Parameters:
            budget: Maximum number of tokens per fragment, 0 splits the text in half
        """
        if budget < 0:
            raise ValueError(f"Fragment budget must not be negative, got {budget}")
        self.budget = budget

    @staticmethod
    def _split_segments(text: str) -> tuple[List[str], List[str]]:
        segments = []
        separators = []
        last_end = 0
        for match in BLANK_LINES_PATTERN.finditer(text):
            segments.append(text[last_end:match.start()])
            separators.append(match.group())
            last_end = match.end()
        segments.append(text[last_end:])
        return segments, separators

    def split_with_separators(self, text: str) -> tuple[List[str], List[str]] | None:
        """
        Returns (fragments, separators) where separators[i] sat between fragments[i] and fragments[i + 1],
        or None when the text holds no blank line at all
        """
        segments, separators = self._split_segments(text)
        if not separators:
            return None
        if self.budget == 0:
            return self._bisect(text)

        fragments = []
        kept_separators = []
        current = segments[0]
        for separator, segment in zip(separators, segments[1:]):
            candidate = current + separator + segment
            if count_tokens(candidate) <= self.budget:
                current = candidate
            else:
                fragments.append(current)
                kept_separators.append(separator)
                current = segment
        fragments.append(current)
        return fragments, kept_separators

    @staticmethod
    def _bisect(text: str) -> tuple[List[str], List[str]]:
        middle = len(text) / 2
        nearest = min(
            BLANK_LINES_PATTERN.finditer(text),
            key=lambda m: abs((m.start() + m.end()) / 2 - middle),
        )
        return [text[:nearest.start()], text[nearest.end():]], [nearest.group()]

    def split(self, text: str) -> List[str] | None:
        result = self.split_with_separators(text)
        if result is None:
            return None
        return result[0]


def split_string_at_blank_lines(text: str, budget: int) -> List[str] | None:
    """
    Split text at blank lines into fragments of at most `budget` tokens.
    `budget == 0` bisects at the blank line nearest the middle.
    Returns None when the text cannot be split.
    """
    return MarkdownFragmenter(budget=budget).split(text)


def join_with_separators(fragments: List[str], separators: List[str]) -> str:
    if len(separators) != len(fragments) - 1:
        raise ValueError("Expected exactly one separator between each pair of fragments")
    parts = [fragments[0]]
    for separator, fragment in zip(separators, fragments[1:]):
        parts.append(separator)
        parts.append(fragment)
    return "".join(parts)
