"""
AI Agents for Spend Wise

Two external language-model providers read receipt images and answer
spending questions:

1. OpenAI (primary)
2. Gemini (fallback)

They are consulted in that order through a ProviderChain. The first
provider that answers wins. A provider that raises anything at all is
skipped and the next one is tried. A provider without an API key is
treated as offline and never called.

Transient upstream errors (rate limits, timeouts, connection drops) are
retried a few times with exponential backoff before the provider counts
as failed.

BOUNDARIES:
- Providers only READ receipts and return raw fields
- Defaults for missing fields are applied downstream, never here
- Providers never touch storage
"""

import base64
import json
import re
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Optional
from uuid import UUID

import google.generativeai as genai
import openai
import structlog
from google.api_core import exceptions as google_exceptions
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from spendwise.audit import AuditLogger
from spendwise.config import GeminiSettings, OpenAISettings, get_settings
from spendwise.models.audit import AuditEventBuilder
from spendwise.models.transaction import (
    CATEGORIES,
    ReceiptClassification,
    Transaction,
    coerce_amount,
)


logger = structlog.get_logger(__name__)


RECEIPT_PROMPT = (
    "Read this receipt and return JSON only: "
    '{"item": "Store", "amount": 0.0, "category": "Type"}. '
    f"Prefer one of these categories: {', '.join(CATEGORIES)}."
)

ASSISTANT_SYSTEM_PROMPT = (
    "You are the Spend Wise AI Assistant. Help users analyze their "
    "spending patterns using the provided context."
)

_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


class ProviderError(Exception):
    """Base exception for AI provider errors."""
    pass


class ClassificationError(ProviderError):
    """Provider answered, but not with a usable receipt object."""
    pass


class AssistantUnavailableError(Exception):
    """No provider could answer a chat question."""
    pass


def parse_classification(text: Optional[str]) -> ReceiptClassification:
    """
    Pull the receipt fields out of a free-form model answer.

    Models wrap their JSON in prose or markdown fences often enough that
    we take the outermost {...} block rather than the whole text.
    """
    if not text or not text.strip():
        raise ClassificationError("Empty response")

    match = _JSON_OBJECT_RE.search(text)
    if not match:
        raise ClassificationError("No JSON object in response")

    try:
        data = json.loads(match.group())
    except json.JSONDecodeError as e:
        raise ClassificationError(f"Malformed JSON in response: {e}") from e

    if not isinstance(data, dict):
        raise ClassificationError("Response JSON is not an object")

    return ReceiptClassification.model_validate(data)


class ReceiptProvider(ABC):
    """
    One external language model.

    Subclasses list the exception types worth retrying in
    ``transient_errors``.
    """

    name: str = "provider"
    transient_errors: tuple[type[BaseException], ...] = ()

    def __init__(self, max_attempts: Optional[int] = None):
        self._max_attempts = max_attempts or get_settings().app.provider_max_attempts

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """Whether the provider has credentials and may be called."""
        pass

    @abstractmethod
    async def classify_receipt(self, content: bytes, mime_type: str) -> ReceiptClassification:
        """Read a receipt image."""
        pass

    @abstractmethod
    async def complete_chat(self, system_prompt: str, user_prompt: str) -> str:
        """Answer a free-text prompt."""
        pass

    async def _call(self, func: Callable[..., Awaitable[Any]], *args, **kwargs) -> Any:
        """Run an upstream call, retrying transient failures."""
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_exponential(multiplier=1, min=1, max=8),
            retry=retry_if_exception_type(self.transient_errors),
            reraise=True,
        )
        return await retrying(func, *args, **kwargs)


class OpenAIProvider(ReceiptProvider):
    """Primary provider backed by the OpenAI chat completions API."""

    name = "openai"
    transient_errors = (
        openai.APIConnectionError,
        openai.RateLimitError,
        openai.InternalServerError,
    )

    def __init__(
        self,
        settings: Optional[OpenAISettings] = None,
        client: Optional[openai.AsyncOpenAI] = None,
        max_attempts: Optional[int] = None,
    ):
        super().__init__(max_attempts)
        self._settings = settings or get_settings().openai
        self._client = client

    @property
    def is_configured(self) -> bool:
        return self._client is not None or self._settings.is_configured

    def _get_client(self) -> openai.AsyncOpenAI:
        if self._client is None:
            self._client = openai.AsyncOpenAI(
                api_key=self._settings.api_key,
                timeout=self._settings.timeout_seconds,
            )
        return self._client

    async def classify_receipt(self, content: bytes, mime_type: str) -> ReceiptClassification:
        encoded = base64.b64encode(content).decode("ascii")
        response = await self._call(
            self._get_client().chat.completions.create,
            model=self._settings.model_name,
            messages=[{
                "role": "user",
                "content": [
                    {"type": "text", "text": RECEIPT_PROMPT},
                    {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{encoded}"}},
                ],
            }],
            response_format={"type": "json_object"},
        )
        return parse_classification(response.choices[0].message.content)

    async def complete_chat(self, system_prompt: str, user_prompt: str) -> str:
        response = await self._call(
            self._get_client().chat.completions.create,
            model=self._settings.model_name,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        )
        answer = (response.choices[0].message.content or "").strip()
        if not answer:
            raise ProviderError("Empty answer")
        return answer


class GeminiProvider(ReceiptProvider):
    """Fallback provider backed by Google Gemini."""

    name = "gemini"
    transient_errors = (
        google_exceptions.ResourceExhausted,
        google_exceptions.ServiceUnavailable,
        google_exceptions.DeadlineExceeded,
        google_exceptions.InternalServerError,
    )

    def __init__(
        self,
        settings: Optional[GeminiSettings] = None,
        model: Optional[genai.GenerativeModel] = None,
        max_attempts: Optional[int] = None,
    ):
        super().__init__(max_attempts)
        self._settings = settings or get_settings().gemini
        self._model = model

    @property
    def is_configured(self) -> bool:
        return self._model is not None or self._settings.is_configured

    def _get_model(self) -> genai.GenerativeModel:
        """Configure Google Generative AI on first use."""
        if self._model is None:
            genai.configure(api_key=self._settings.api_key)
            self._model = genai.GenerativeModel(
                model_name=self._settings.model_name,
                generation_config={
                    "temperature": self._settings.temperature,
                    "max_output_tokens": self._settings.max_tokens,
                },
            )
        return self._model

    async def classify_receipt(self, content: bytes, mime_type: str) -> ReceiptClassification:
        response = await self._call(
            self._get_model().generate_content_async,
            [RECEIPT_PROMPT, {"mime_type": mime_type, "data": content}],
        )
        return parse_classification(response.text)

    async def complete_chat(self, system_prompt: str, user_prompt: str) -> str:
        response = await self._call(
            self._get_model().generate_content_async,
            f"{system_prompt}\n\n{user_prompt}",
        )
        answer = (response.text or "").strip()
        if not answer:
            raise ProviderError("Empty answer")
        return answer


class ProviderChain:
    """
    Ordered failover over AI providers.

    Priority follows list order. Unconfigured providers are skipped
    without being counted as failures.
    """

    def __init__(
        self,
        providers: list[ReceiptProvider],
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._providers = list(providers)
        self._audit_logger = audit_logger

    @property
    def providers(self) -> list[ReceiptProvider]:
        return list(self._providers)

    def status(self) -> dict[str, str]:
        """ONLINE/OFFLINE per provider, in priority order."""
        return {
            provider.name: "ONLINE" if provider.is_configured else "OFFLINE"
            for provider in self._providers
        }

    async def _run(
        self,
        operation: str,
        call: Callable[[ReceiptProvider], Awaitable[Any]],
        correlation_id: Optional[UUID],
    ) -> tuple[Optional[Any], Optional[str]]:
        for priority, provider in enumerate(self._providers, start=1):
            if not provider.is_configured:
                continue

            logger.info(
                "provider_attempt",
                operation=operation,
                provider=provider.name,
                priority=priority,
            )
            try:
                result = await call(provider)
            except Exception as e:
                logger.warning(
                    "provider_failed",
                    operation=operation,
                    provider=provider.name,
                    priority=priority,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                if self._audit_logger:
                    await self._audit_logger.log(
                        AuditEventBuilder.provider_failed(
                            provider=provider.name,
                            priority=priority,
                            error_message=str(e),
                            correlation_id=correlation_id,
                        )
                    )
                continue

            if self._audit_logger:
                await self._audit_logger.log(
                    AuditEventBuilder.provider_succeeded(
                        provider=provider.name,
                        priority=priority,
                        correlation_id=correlation_id,
                    )
                )
            return result, provider.name

        return None, None

    async def classify_receipt(
        self,
        content: bytes,
        mime_type: str,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Optional[ReceiptClassification], Optional[str]]:
        """
        Ask each provider in turn to read the receipt.

        Returns:
            (classification, provider_name), or (None, None) if no
            provider produced an answer
        """
        return await self._run(
            "classify_receipt",
            lambda provider: provider.classify_receipt(content, mime_type),
            correlation_id,
        )

    async def complete_chat(
        self,
        system_prompt: str,
        user_prompt: str,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[str, str]:
        """
        Ask each provider in turn to answer a prompt.

        Raises:
            AssistantUnavailableError: If no provider answered
        """
        answer, provider = await self._run(
            "complete_chat",
            lambda p: p.complete_chat(system_prompt, user_prompt),
            correlation_id,
        )
        if answer is None:
            raise AssistantUnavailableError("No AI provider is available to answer")
        return answer, provider


class AssistantAgent:
    """
    Answers questions about the user's spending.

    The model only sees the most recent transactions and the total
    spend; it has no other access to the store.
    """

    def __init__(
        self,
        chain: ProviderChain,
        context_size: Optional[int] = None,
    ):
        self._chain = chain
        self._context_size = context_size or get_settings().app.chat_context_size

    def build_prompt(self, question: str, transactions: list[Transaction]) -> str:
        """
        Assemble the user prompt.

        Transactions arrive newest first, so the head of the list is
        the most recent activity.
        """
        recent = [tx.model_dump(mode="json") for tx in transactions[:self._context_size]]
        total = sum(coerce_amount(tx.amount) for tx in transactions)
        return (
            f"User Question: {question}\n"
            f"Transactions: {json.dumps(recent, ensure_ascii=False)}\n"
            f"Total Spend: {total:.2f}\n"
            "Answer concisely as the Spend Wise AI Assistant."
        )

    async def answer(
        self,
        question: str,
        transactions: list[Transaction],
    ) -> tuple[str, str]:
        """
        Answer a question.

        Returns:
            (answer, provider_name)

        Raises:
            AssistantUnavailableError: If no provider answered
        """
        prompt = self.build_prompt(question, transactions)
        return await self._chain.complete_chat(ASSISTANT_SYSTEM_PROMPT, prompt)
