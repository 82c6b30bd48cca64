# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
from dataclasses import dataclass
from typing import Callable, Iterable


@dataclass(frozen=True)
class Pending:
    # most recently streamed chunk, or a rendered composite of child statuses
    last_token: str = ""


@dataclass(frozen=True)
class Done:
    translation: str


@dataclass(frozen=True)
class Error:
    message: str


Status = Pending | Done | Error
OnStatus = Callable[[Status], None]


def status_to_text(status: Status) -> str:
    if isinstance(status, Pending):
        if not status.last_token:
            return "⏳"
        flattened = status.last_token.replace("\n", " ")
        return f"⚡ {flattened}"
    if isinstance(status, Done):
        return "✅"
    if isinstance(status, Error):
        return f"❌ {status.message}"
    raise TypeError(f"Unknown status: {status!r}")


def combine_statuses(statuses: Iterable[Status]) -> Pending:
    """One composite line for a group of sibling fragments, in positional order."""
    return Pending(last_token=f"[{', '.join(status_to_text(s) for s in statuses)}]")
