"""Claude API client for comment generation.

Each call to LLMClient.generate is exactly one Messages API request.
Retrying is left to the documentation client, so the SDK's own retry
layer is switched off. The client is shared by the worker threads of a
run; request pacing and the usage tally are kept under one lock.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Optional

import anthropic

from autoscribe.utils.config import APIConfig

logger = logging.getLogger(__name__)

# Characters per token, for offline estimates only
_CHARS_PER_TOKEN = 4


@dataclass(frozen=True)
class ModelPricing:
    """USD price per million input and output tokens."""

    input_per_mtok: float
    output_per_mtok: float

    def input_cost(self, tokens: int) -> float:
        return tokens / 1_000_000 * self.input_per_mtok

    def output_cost(self, tokens: int) -> float:
        return tokens / 1_000_000 * self.output_per_mtok


# Approximate list prices, 2025
_MODEL_PRICING: dict[str, ModelPricing] = {
    "claude-sonnet-4-20250514": ModelPricing(3.0, 15.0),
    "claude-haiku-4-5-20251001": ModelPricing(0.80, 4.0),
    "claude-opus-4-20250514": ModelPricing(15.0, 75.0),
}
_DEFAULT_PRICING = ModelPricing(3.0, 15.0)


@dataclass
class TokenUsage:
    """Token counts for one request, or a running total over many."""

    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        """Input plus output tokens."""
        return self.input_tokens + self.output_tokens

    def add(self, other: "TokenUsage") -> None:
        self.input_tokens += other.input_tokens
        self.output_tokens += other.output_tokens


@dataclass
class CostEstimate:
    """Offline price estimate for one prompt.

    Attributes:
        input_tokens: Approximate prompt size.
        output_tokens: Assumed size of the generated comment.
        input_cost_usd: Price of the prompt.
        output_cost_usd: Price of the comment.
        total_cost_usd: Sum of both.
        model: Model whose prices were used.
    """

    input_tokens: int
    output_tokens: int
    input_cost_usd: float
    output_cost_usd: float
    total_cost_usd: float
    model: str


@dataclass
class GenerationResult:
    """Text and accounting returned by a single request.

    Attributes:
        content: Text of the first content block, or "" if there is none.
        usage: Tokens billed for this request.
        model: Model that served the request.
        stop_reason: Why the model stopped, as reported by the API.
    """

    content: str
    usage: TokenUsage
    model: str
    stop_reason: Optional[str] = None


class LLMClient:
    """Thin, thread-safe wrapper around anthropic.Anthropic."""

    def __init__(self, config: Optional[APIConfig] = None) -> None:
        """Initialize the client.

        The SDK client is built on first use, so a client without an API
        key can still price prompts.

        Args:
            config: Model, sampling and rate-limit settings plus the API
                key. Uses defaults if not provided.
        """
        self.config = config or APIConfig()
        self._client: Optional[anthropic.Anthropic] = None
        self._lock = threading.Lock()
        self._min_interval = 60.0 / max(self.config.rate_limit_rpm, 1)
        self._next_slot = 0.0
        self._usage = TokenUsage()

    @property
    def client(self) -> anthropic.Anthropic:
        """The underlying SDK client.

        Raises:
            ValueError: If no API key is configured.
        """
        if self._client is None:
            if not self.config.api_key:
                raise ValueError(
                    "No API key configured. Set ANTHROPIC_API_KEY or pass --api-key."
                )
            self._client = anthropic.Anthropic(
                api_key=self.config.api_key, max_retries=0
            )
        return self._client

    @property
    def total_usage(self) -> TokenUsage:
        """Tokens billed across every request made by this client."""
        return self._usage

    def generate(
        self,
        prompt: str,
        system: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> GenerationResult:
        """Send one prompt and return the model's reply.

        Args:
            prompt: User message.
            system: Optional system prompt.
            max_tokens: Overrides config.max_tokens.
            temperature: Overrides config.temperature.

        Returns:
            The reply text with its token usage.

        Raises:
            ValueError: If no API key is configured.
            anthropic.APIError: If the request fails. It is not retried.
        """
        request = self._build_request(prompt, system, max_tokens, temperature)
        client = self.client
        self._wait_for_slot()
        response = client.messages.create(**request)

        usage = TokenUsage(
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
        )
        with self._lock:
            self._usage.add(usage)
        logger.debug(
            "Request used %d input and %d output tokens",
            usage.input_tokens,
            usage.output_tokens,
        )

        return GenerationResult(
            content=response.content[0].text if response.content else "",
            usage=usage,
            model=response.model,
            stop_reason=response.stop_reason,
        )

    def estimate_cost(
        self,
        prompt: str,
        estimated_output_tokens: int = 300,
        model: Optional[str] = None,
    ) -> CostEstimate:
        """Price a prompt without sending it.

        Unknown models are priced like the default Sonnet model.
        """
        model_name = model or self.config.model
        pricing = _MODEL_PRICING.get(model_name, _DEFAULT_PRICING)
        input_tokens = self.count_tokens(prompt)
        input_cost = pricing.input_cost(input_tokens)
        output_cost = pricing.output_cost(estimated_output_tokens)
        return CostEstimate(
            input_tokens=input_tokens,
            output_tokens=estimated_output_tokens,
            input_cost_usd=input_cost,
            output_cost_usd=output_cost,
            total_cost_usd=input_cost + output_cost,
            model=model_name,
        )

    def count_tokens(self, text: str) -> int:
        """Approximate the token count of text, never returning 0."""
        return max(1, len(text) // _CHARS_PER_TOKEN)

    def _build_request(
        self,
        prompt: str,
        system: Optional[str],
        max_tokens: Optional[int],
        temperature: Optional[float],
    ) -> dict:
        request: dict = {
            "model": self.config.model,
            "max_tokens": max_tokens or self.config.max_tokens,
            "temperature": (
                self.config.temperature if temperature is None else temperature
            ),
            "messages": [{"role": "user", "content": prompt}],
        }
        if system:
            request["system"] = system
        return request

    def _wait_for_slot(self) -> None:
        """Block until this thread may start a request under the rpm limit."""
        with self._lock:
            now = time.monotonic()
            start = max(now, self._next_slot)
            self._next_slot = start + self._min_interval
        delay = start - now
        if delay > 0:
            logger.debug("Rate limit reached, waiting %.2f seconds", delay)
            time.sleep(delay)
