"""Shared fixtures for mdtranslate tests."""

import asyncio

import pytest

from mdtranslate.agents.agent import ApiFailure, ApiSuccess


class FakeAgent:
    """In-process stand-in for the streaming HTTP agent."""

    def __init__(self, translate=None, fail=None, delays=None):
        self.translate = translate or (lambda text: text.upper())
        self.fail = fail or (lambda text: None)
        self.delays = delays or {}
        self.calls: list[str] = []
        self.cancelled: list[str] = []
        self.closed = False

    async def call_api(self, text, instruction, options, on_token):
        self.calls.append(text)
        delay = self.delays.get(text, 0)
        if delay:
            try:
                await asyncio.sleep(delay)
            except asyncio.CancelledError:
                self.cancelled.append(text)
                raise
        failure = self.fail(text)
        if failure is not None:
            return failure
        translation = self.translate(text)
        on_token(translation)
        return ApiSuccess(translation=translation)

    async def aclose(self):
        self.closed = True

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()


def fail_longer_than(limit: int):
    def fail(text):
        if len(text) > limit:
            return ApiFailure(message="Please reduce the length of the messages.")
        return None

    return fail


@pytest.fixture
def make_agent():
    """Factory for fake agents: make_agent(translate=..., fail=..., delays=...)."""
    return FakeAgent


@pytest.fixture
def size_limited_agent():
    """Agent rejecting any input longer than 10 characters as too large."""
    return FakeAgent(fail=fail_longer_than(10))


@pytest.fixture
def statuses():
    """Collected status updates, usable directly as an on_status callback via .append."""
    return []
