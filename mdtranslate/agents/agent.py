# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0

import asyncio
import json
import logging
import re
import time
from dataclasses import dataclass
from typing import Callable

import httpx

from mdtranslate.logger import global_logger
from mdtranslate.utils.utils import get_httpx_proxy

MODEL_SHORTHANDS = {
    "4": "gpt-4",
    "4large": "gpt-4-32k",
    "3": "gpt-3.5-turbo",
}

# Error codes meaning "this input is too large for one request"
CONTEXT_LENGTH_EXCEEDED = "context_length_exceeded"
STRING_ABOVE_MAX_LENGTH = "string_above_max_length"
OUTPUT_TRUNCATED = "output_truncated"
STREAM_READ_ERROR = "stream_read_error"
SIZE_ERROR_CODES = {CONTEXT_LENGTH_EXCEEDED, STRING_ABOVE_MAX_LENGTH, OUTPUT_TRUNCATED, STREAM_READ_ERROR}
# Fallback for providers that only report a message
SIZE_ERROR_PATTERN = re.compile(r"reduce the length|stream read error|maximum context length", re.IGNORECASE)

OnToken = Callable[[str], None]


class AgentResultError(ValueError):
    """The service answered, but the streamed payload could not be understood."""

    def __init__(self, message):
        super().__init__(message)


class TranslationServiceError(RuntimeError):
    """Fatal service failure, not recoverable by splitting the input."""

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.code = code


def resolve_model_shorthand(model: str) -> str:
    return MODEL_SHORTHANDS.get(model, model)


@dataclass(frozen=True)
class ApiOptions:
    model: str
    temperature: float = 0.1

    def __post_init__(self):
        if not 0 <= self.temperature <= 1:
            raise ValueError(f"Temperature must be between 0 and 1, got {self.temperature}")


@dataclass(frozen=True)
class ApiSuccess:
    translation: str


@dataclass(frozen=True)
class ApiFailure:
    message: str
    code: str | None = None
    status_code: int | None = None

    @property
    def is_size_related(self) -> bool:
        if self.code in SIZE_ERROR_CODES:
            return True
        return SIZE_ERROR_PATTERN.search(self.message) is not None

    @property
    def retryable(self) -> bool:
        if self.status_code is None or self.code == "insufficient_quota":
            return False
        return self.status_code == 429 or self.status_code >= 500


ApiResult = ApiSuccess | ApiFailure


@dataclass(kw_only=True)
class AgentConfig:
    logger: logging.Logger = global_logger
    base_url: str
    api_key: str | None = None
    timeout: int = 600  # seconds (httpx read timeout)
    api_call_interval: float = 0.0  # minimum seconds between two request starts
    retry: int = 2  # retries for 429/5xx answers, before any token is streamed
    retry_delay: float = 0.5
    https_proxy: str | None = None
    system_proxy_enable: bool = False


class Agent:
    """
    Streaming client for an OpenAI-compatible chat completions endpoint.

    `call_api` never raises for service failures; it returns an ApiFailure so the
    caller can decide between splitting the input and giving up.
    """

    def __init__(self, config: AgentConfig, client: httpx.AsyncClient | None = None):
        if not config.base_url:
            raise ValueError("base_url is required")
        self.baseurl = config.base_url.strip()
        if self.baseurl.endswith("/"):
            self.baseurl = self.baseurl[:-1]
        self.key = config.api_key.strip() if config.api_key else "xx"
        self.timeout = httpx.Timeout(connect=5, read=config.timeout, write=300, pool=10)
        self.logger = config.logger
        self.retry = config.retry
        self.retry_delay = config.retry_delay
        self.api_call_interval = config.api_call_interval
        self.proxy = get_httpx_proxy(config.https_proxy, config.system_proxy_enable)

        self._client = client
        self._owns_client = client is None
        self._rate_lock = asyncio.Lock()
        self._last_request_at = float("-inf")

    async def __aenter__(self):
        self._get_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(trust_env=False, proxy=self.proxy, timeout=self.timeout)
        return self._client

    async def aclose(self):
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _prepare_request_data(self, text: str, instruction: str, options: ApiOptions):
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.key}",
        }
        data = {
            "model": options.model,
            "messages": [
                {"role": "system", "content": instruction},
                {"role": "user", "content": text},
            ],
            "temperature": options.temperature,
            "stream": True,
        }
        return headers, data

    async def _wait_for_slot(self):
        if self.api_call_interval <= 0:
            return
        async with self._rate_lock:
            wait = self._last_request_at + self.api_call_interval - time.monotonic()
            if wait > 0:
                await asyncio.sleep(wait)
            self._last_request_at = time.monotonic()

    @staticmethod
    def _failure_from_error(error, status_code: int | None = None) -> ApiFailure:
        if isinstance(error, dict):
            message = error.get("message") or json.dumps(error, ensure_ascii=False)
            code = error.get("code") or error.get("type")
            return ApiFailure(message=str(message), code=str(code) if code else None, status_code=status_code)
        return ApiFailure(message=str(error), status_code=status_code)

    def _failure_from_body(self, status_code: int, body: bytes) -> ApiFailure:
        text = body.decode("utf-8", errors="replace")
        try:
            payload = json.loads(text)
        except json.JSONDecodeError:
            return ApiFailure(message=f"HTTP {status_code}: {text}", status_code=status_code)
        if isinstance(payload, dict) and "error" in payload:
            return self._failure_from_error(payload["error"], status_code)
        return ApiFailure(message=f"HTTP {status_code}: {text}", status_code=status_code)

    @staticmethod
    def _parse_chunk(payload: str) -> dict:
        try:
            chunk = json.loads(payload)
        except json.JSONDecodeError as e:
            raise AgentResultError(f"Malformed stream chunk: {payload[:80]!r}") from e
        if not isinstance(chunk, dict):
            raise AgentResultError(f"Unexpected stream chunk: {payload[:80]!r}")
        if "error" in chunk:
            return chunk
        # choices: list of objects, each with an optional object delta holding optional text content
        choices = chunk.get("choices") or []
        if not isinstance(choices, list):
            raise AgentResultError(f"Unexpected stream chunk: {payload[:80]!r}")
        for choice in choices:
            delta = choice.get("delta") if isinstance(choice, dict) else None
            if not isinstance(choice, dict) or not isinstance(delta or {}, dict):
                raise AgentResultError(f"Unexpected stream chunk: {payload[:80]!r}")
            content = (delta or {}).get("content")
            if content is not None and not isinstance(content, str):
                raise AgentResultError(f"Unexpected stream chunk: {payload[:80]!r}")
        return chunk

    async def _stream_once(self, text: str, instruction: str, options: ApiOptions, on_token: OnToken) -> ApiResult:
        headers, data = self._prepare_request_data(text, instruction, options)
        parts: list[str] = []
        finish_reason = None
        await self._wait_for_slot()
        self.logger.debug(f"Request: model={options.model}, {len(text)} chars")
        try:
            async with self._get_client().stream(
                    "POST",
                    f"{self.baseurl}/chat/completions",
                    json=data,
                    headers=headers,
                    timeout=self.timeout,
            ) as response:
                if response.status_code >= 400:
                    failure = self._failure_from_body(response.status_code, await response.aread())
                    self.logger.error(f"HTTP status error: {response.status_code} - {failure.message}")
                    return failure
                async for line in response.aiter_lines():
                    line = line.strip()
                    if not line.startswith("data:"):
                        continue
                    payload = line[len("data:"):].strip()
                    if payload == "[DONE]":
                        break
                    chunk = self._parse_chunk(payload)
                    if "error" in chunk:
                        return self._failure_from_error(chunk["error"])
                    choices = chunk.get("choices") or []
                    if not choices:
                        continue
                    choice = choices[0]
                    content = (choice.get("delta") or {}).get("content")
                    if content:
                        parts.append(content)
                        on_token(content)
                    if choice.get("finish_reason"):
                        finish_reason = choice["finish_reason"]
        except (httpx.TransportError, httpx.StreamError) as e:
            self.logger.error(f"Stream error: {e!r}")
            return ApiFailure(message=f"stream read error: {e!r}", code=STREAM_READ_ERROR)
        except AgentResultError as e:
            self.logger.error(f"Stream error: {e}")
            return ApiFailure(message=f"stream read error: {e}", code=STREAM_READ_ERROR)

        if finish_reason == "length":
            return ApiFailure(
                message="The output was truncated; reduce the length of the input.",
                code=OUTPUT_TRUNCATED,
            )
        return ApiSuccess(translation="".join(parts))

    async def call_api(self, text: str, instruction: str, options: ApiOptions, on_token: OnToken) -> ApiResult:
        retry_count = 0
        while True:
            result = await self._stream_once(text, instruction, options, on_token)
            if isinstance(result, ApiFailure) and result.retryable and retry_count < self.retry:
                retry_count += 1
                self.logger.info(f"Retrying {retry_count}/{self.retry} ...")
                await asyncio.sleep(self.retry_delay)
                continue
            if retry_count > 0 and isinstance(result, ApiSuccess):
                self.logger.info(f"Retry succeeded ({retry_count}/{self.retry}).")
            return result
