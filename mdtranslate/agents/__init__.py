# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
from mdtranslate.agents.agent import (
    Agent,
    AgentConfig,
    ApiFailure,
    ApiOptions,
    ApiResult,
    ApiSuccess,
    TranslationServiceError,
    resolve_model_shorthand,
)

__all__ = [
    "Agent",
    "AgentConfig",
    "ApiFailure",
    "ApiOptions",
    "ApiResult",
    "ApiSuccess",
    "TranslationServiceError",
    "resolve_model_shorthand",
]
