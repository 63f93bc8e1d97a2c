"""
LLM Client Wrapper - generation collaborator for the recipe parsers

Constructed explicitly and passed to the services that need it. Readiness is
decided once, at construction, and exposed as `ready` / `error` so callers can
refuse work up front instead of failing mid-request.

Supported providers:
- OpenAI (gpt-*)
- Anthropic Claude (claude-*)

Transport failures are logged and surface as an empty string; the parsing
layer treats that as an empty payload.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from aurachef.core.config import Settings, settings as default_settings
from aurachef.core.exceptions import GenerationClientError
from aurachef.schemas.recipe import TargetShape

logger = logging.getLogger(__name__)


class LLMProvider(str, Enum):
    """Supported LLM providers"""
    ANTHROPIC = "anthropic"
    OPENAI = "openai"


@dataclass
class GenerationParams:
    """Per-request generation settings"""
    max_tokens: int = 1000
    temperature: float = 0.15
    response_shape: Optional[TargetShape] = None
    system: Optional[str] = None


@dataclass
class LLMResponse:
    """Response from LLM with metadata"""
    text: str
    model: str
    provider: str
    input_tokens: int
    output_tokens: int
    latency_ms: int = 0


class LLMClient:
    """
    Usage:
        client = LLMClient(model="gpt-4o-mini", api_key="...")
        if client.ready:
            text = await client.complete(prompt, GenerationParams(max_tokens=2200))
    """

    def __init__(
        self,
        model: Optional[str] = None,
        api_key: Optional[str] = None,
        config: Optional[Settings] = None
    ):
        config = config or default_settings
        self.model = model or config.llm_model
        self.api_key = api_key if api_key is not None else config.api_key
        self.min_api_key_length = config.min_api_key_length

        self._openai_client = None
        self._anthropic_client = None
        self.error: Optional[str] = None
        self.provider: Optional[LLMProvider] = None

        try:
            self._validate()
        except GenerationClientError as e:
            self.error = str(e)
            logger.error(f"FATAL: generation client initialization failed: {self.error}")
        else:
            logger.info(f"LLM client ready for model '{self.model}'")

    @property
    def ready(self) -> bool:
        return self.error is None

    def _validate(self):
        try:
            self.provider = self._get_provider(self.model)
        except ValueError as e:
            raise GenerationClientError(str(e)) from e
        if not self.api_key or len(self.api_key) < self.min_api_key_length:
            raise GenerationClientError("API Key not found or is invalid.")

    def _get_provider(self, model: str) -> LLMProvider:
        """Determine provider from model name"""
        if "claude" in model.lower():
            return LLMProvider.ANTHROPIC
        elif "gpt" in model.lower():
            return LLMProvider.OPENAI
        else:
            raise ValueError(f"Cannot determine provider for model: {model}")

    def _get_openai_client(self):
        """Lazy load OpenAI client"""
        if self._openai_client is None:
            import openai
            self._openai_client = openai.AsyncOpenAI(api_key=self.api_key)
            logger.info("OpenAI client initialized")
        return self._openai_client

    def _get_anthropic_client(self):
        """Lazy load Anthropic client"""
        if self._anthropic_client is None:
            import anthropic
            self._anthropic_client = anthropic.AsyncAnthropic(api_key=self.api_key)
            logger.info("Anthropic client initialized")
        return self._anthropic_client

    async def complete(self, prompt: str, params: Optional[GenerationParams] = None) -> str:
        """
        Complete a prompt with the configured model.

        Returns:
            Generated text, or "" when the provider call failed

        Raises:
            GenerationClientError: the client is not ready
        """
        if not self.ready:
            raise GenerationClientError(self.error or "AI Culinary Engine is offline.")

        params = params or GenerationParams()
        start_time = time.time()
        try:
            if self.provider == LLMProvider.ANTHROPIC:
                response = await self._call_anthropic(prompt, params)
            else:
                response = await self._call_openai(prompt, params)
        except Exception as e:
            logger.error(f"LLM call failed ({self.model}): {str(e)}")
            return ""

        response.latency_ms = int((time.time() - start_time) * 1000)
        logger.info(
            f"LLM call successful: {self.model} ({response.latency_ms}ms, "
            f"{response.input_tokens}/{response.output_tokens} tokens, {len(response.text)} chars)"
        )
        return response.text

    async def _call_openai(self, prompt: str, params: GenerationParams) -> LLMResponse:
        """Call OpenAI API"""
        client = self._get_openai_client()

        messages = []
        if params.system:
            messages.append({"role": "system", "content": params.system})
        messages.append({"role": "user", "content": prompt})

        kwargs: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "max_tokens": params.max_tokens,
            "temperature": params.temperature,
        }

        # JSON mode only accepts objects; arrays rely on the prompt rules
        if params.response_shape == TargetShape.OBJECT:
            kwargs["response_format"] = {"type": "json_object"}

        response = await client.chat.completions.create(**kwargs)

        return LLMResponse(
            text=response.choices[0].message.content or "",
            model=self.model,
            provider=LLMProvider.OPENAI.value,
            input_tokens=response.usage.prompt_tokens,
            output_tokens=response.usage.completion_tokens,
        )

    async def _call_anthropic(self, prompt: str, params: GenerationParams) -> LLMResponse:
        """Call Anthropic API"""
        client = self._get_anthropic_client()

        kwargs: Dict[str, Any] = {
            "model": self.model,
            "max_tokens": params.max_tokens,
            "temperature": params.temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if params.system:
            kwargs["system"] = params.system

        response = await client.messages.create(**kwargs)

        return LLMResponse(
            text="\n".join(block.text for block in response.content if getattr(block, "text", None)),
            model=self.model,
            provider=LLMProvider.ANTHROPIC.value,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
        )

    def get_stats(self) -> Dict[str, Any]:
        """Get client statistics"""
        return {
            "model": self.model,
            "provider": self.provider.value if self.provider else None,
            "ready": self.ready,
            "error": self.error,
        }
