"""AI Agents package."""

from spendwise.agents.ai_agents import (
    ASSISTANT_SYSTEM_PROMPT,
    RECEIPT_PROMPT,
    AssistantAgent,
    AssistantUnavailableError,
    ClassificationError,
    GeminiProvider,
    OpenAIProvider,
    ProviderChain,
    ProviderError,
    ReceiptProvider,
    parse_classification,
)

__all__ = [
    "ASSISTANT_SYSTEM_PROMPT",
    "RECEIPT_PROMPT",
    "AssistantAgent",
    "AssistantUnavailableError",
    "ClassificationError",
    "GeminiProvider",
    "OpenAIProvider",
    "ProviderChain",
    "ProviderError",
    "ReceiptProvider",
    "parse_classification",
]
