# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Self

from mdtranslate.agents.agent import Agent, AgentConfig, ApiOptions, resolve_model_shorthand
from mdtranslate.ir.document import Document


@dataclass(kw_only=True)
class AiTranslatorConfig(AgentConfig):
    base_url: str | None = field(
        default=None,
        metadata={"description": "OpenAI-compatible endpoint"},
    )
    model_id: str | None = field(
        default=None, metadata={"description": "Model name or shorthand (3, 4, 4large)"}
    )
    temperature: float = 0.1
    fragment_size: int = 2048


class AiTranslator(ABC):
    """
    Translates the intermediate document in place, no format conversion
    """

    def __init__(self, config: AiTranslatorConfig, agent: Agent | None = None):
        self.config = config
        self.logger = config.logger
        if agent is None and (config.base_url is None or config.api_key is None or config.model_id is None):
            raise ValueError("base_url, api_key, and model_id are required")
        if config.model_id is None:
            raise ValueError("model_id is required")
        self.options = ApiOptions(model=resolve_model_shorthand(config.model_id), temperature=config.temperature)
        self.agent = agent if agent is not None else Agent(config)

    async def aclose(self):
        await self.agent.aclose()

    @abstractmethod
    async def translate_async(self, document: Document, instruction: str, on_status=None) -> Self: ...
