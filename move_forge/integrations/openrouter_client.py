"""
OpenRouter chat completion client with rate-limit resilience.

Talks to the OpenAI-compatible OpenRouter endpoint through the openai SDK.
The SDK's own retries are disabled: this client owns the retry policy
(Retry-After aware backoff on HTTP 429 and free-tier model downgrade).

Follows: Dependency Injection, Error Handling Standards
"""

from __future__ import annotations

import asyncio
import math
from typing import Any, Iterable, Mapping, Optional, Sequence

import httpx
from openai import (
    APIConnectionError,
    APIResponseValidationError,
    APIStatusError,
    APITimeoutError,
    AsyncOpenAI,
    RateLimitError,
)

from shared.config import SharedConfig

from ..error_instrumentation import ErrorContext, log_with_context
from ..exceptions import (
    ConfigurationError,
    ExhaustedRetriesError,
    MalformedResponseError,
    UpstreamError,
)
from ..models import ArtifactParameters, ArtifactType
from ..prompts import (
    build_analysis_messages,
    build_chat_messages,
    build_explanation_messages,
    build_generation_messages,
    build_recommendation_messages,
)


def standard_tier(model: str) -> str:
    """Map a free-tier model id to its standard-tier counterpart."""
    suffix = SharedConfig.FREE_TIER_SUFFIX
    if model.endswith(suffix):
        return model[: -len(suffix)]
    return model


def retry_delay(response: Optional[httpx.Response], attempt: int) -> float:
    """
    Seconds to wait after a rate-limit signal.

    Uses the Retry-After header when it holds a finite, non-negative
    number of seconds, otherwise exponential backoff ``2 ** attempt``.
    Either way the wait is capped at ``SharedConfig.MAX_RETRY_DELAY``.
    """
    if response is not None:
        header = response.headers.get("retry-after")
        if header is not None:
            try:
                seconds = float(header.strip())
            except ValueError:
                seconds = -1.0
            if math.isfinite(seconds) and seconds >= 0:
                return min(seconds, SharedConfig.MAX_RETRY_DELAY)
    return float(min(2 ** attempt, SharedConfig.MAX_RETRY_DELAY))


class OpenRouterClient:
    """
    Resilient request client for the code generation service.

    Stateless between calls: every ``send`` builds its own SDK client, so a
    single instance is safe to share across concurrent simulations.

    Attributes:
        api_key: OpenRouter credential (None when not configured)
        default_model: Model used when ``send`` is not given one
        max_retries: Additional attempts after the first on HTTP 429
        timeout: Bound in seconds for each HTTP request

    Example:
        >>> client = OpenRouterClient(api_key="sk-or-xxx")
        >>> text = await client.send([{"role": "user", "content": "Hello"}])
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = SharedConfig.OPENROUTER_BASE_URL,
        default_model: str = SharedConfig.DEFAULT_MODEL,
        max_retries: int = SharedConfig.MAX_RETRIES,
        timeout: float = SharedConfig.REQUEST_TIMEOUT,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            api_key: Credential; falls back to OPENROUTER_API_KEY
            base_url: OpenAI-compatible API root
            default_model: Model identifier used by default
            max_retries: Retry budget for rate limiting
            timeout: Per-request timeout in seconds
            http_client: Optional httpx client (injected in tests); never
                closed by this class

        Raises:
            ValueError: If max_retries is negative or timeout not positive
        """
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if timeout <= 0:
            raise ValueError("timeout must be > 0")

        self.api_key = api_key if api_key is not None else SharedConfig.get_openrouter_api_key()
        self.base_url = base_url
        self.default_model = default_model
        self.max_retries = max_retries
        self.timeout = timeout
        self._http_client = http_client

    @property
    def is_configured(self) -> bool:
        """True when a credential is available."""
        return bool(self.api_key and self.api_key.strip())

    def ensure_configured(self) -> None:
        """Fail fast when no credential is configured."""
        if not self.is_configured:
            raise ConfigurationError(SharedConfig.OPENROUTER_API_KEY_ENV, service="code generation")

    def _build_client(self) -> AsyncOpenAI:
        return AsyncOpenAI(
            api_key=self.api_key,
            base_url=self.base_url,
            timeout=self.timeout,
            max_retries=0,
            default_headers={
                "HTTP-Referer": SharedConfig.APP_URL,
                "X-Title": SharedConfig.APP_TITLE,
            },
            http_client=self._http_client,
        )

    async def send(
        self,
        messages: Sequence[dict[str, str]],
        model: Optional[str] = None,
        max_retries: Optional[int] = None,
    ) -> str:
        """
        Perform one logical chat completion exchange.

        Args:
            messages: Ordered role/content pairs
            model: Model identifier (default: self.default_model)
            max_retries: Retry budget override for this call

        Returns:
            Content of the first response choice, verbatim

        Raises:
            ConfigurationError: No credential (no request is made)
            ExhaustedRetriesError: Every attempt was rate limited
            UpstreamError: Non-2xx, non-429 response or transport failure
            MalformedResponseError: Unparseable response or no usable choice
        """
        self.ensure_configured()

        model = model or self.default_model
        retries = self.max_retries if max_retries is None else max_retries
        if retries < 0:
            raise ValueError("max_retries must be >= 0")

        client = self._build_client()
        try:
            for attempt in range(retries + 1):
                try:
                    completion = await client.chat.completions.create(
                        model=model,
                        messages=list(messages),  # type: ignore[arg-type]
                        temperature=SharedConfig.TEMPERATURE,
                        max_tokens=SharedConfig.MAX_TOKENS,
                        stream=False,
                    )
                except RateLimitError as e:
                    delay = retry_delay(e.response, attempt)
                    log_with_context(
                        "warning",
                        "openrouter_rate_limited",
                        model=model,
                        attempt=attempt + 1,
                        max_attempts=retries + 1,
                        delay_seconds=delay,
                    )

                    downgraded = standard_tier(model)
                    if downgraded != model:
                        log_with_context(
                            "warning",
                            "openrouter_model_downgraded",
                            from_model=model,
                            to_model=downgraded,
                        )
                        model = downgraded

                    if attempt == retries:
                        log_with_context(
                            "error",
                            "openrouter_retries_exhausted",
                            attempts=attempt + 1,
                            model=model,
                        )
                        raise ExhaustedRetriesError(attempt + 1, model) from e

                    await asyncio.sleep(delay)
                    continue
                except APIStatusError as e:
                    error = UpstreamError(e.status_code, e.response.reason_phrase, cause=e)
                    ErrorContext(
                        operation="openrouter_request",
                        error=error,
                        context={"model": model, "attempt": attempt + 1},
                    ).log()
                    raise error from e
                except APITimeoutError as e:
                    raise UpstreamError(
                        None, f"request timed out after {self.timeout}s", cause=e
                    ) from e
                except APIConnectionError as e:
                    raise UpstreamError(None, f"connection failed: {e}", cause=e) from e
                except (APIResponseValidationError, ValueError) as e:
                    ErrorContext(
                        operation="openrouter_request",
                        error=e,
                        context={"model": model, "attempt": attempt + 1},
                    ).log()
                    raise MalformedResponseError(
                        f"OpenRouter response could not be parsed: {e}"
                    ) from e

                content = self._first_choice_content(completion)
                log_with_context(
                    "info",
                    "openrouter_request_complete",
                    model=model,
                    attempts=attempt + 1,
                    response_length=len(content),
                )
                return content
        finally:
            if self._http_client is None:
                await client.close()

        # range(retries + 1) always runs at least once and every branch exits
        raise RuntimeError("unreachable")

    @staticmethod
    def _first_choice_content(completion: Any) -> str:
        choices = getattr(completion, "choices", None)
        if not choices:
            raise MalformedResponseError("OpenRouter response contained no choices")
        message = getattr(choices[0], "message", None)
        content = getattr(message, "content", None)
        if content is None:
            raise MalformedResponseError("OpenRouter response choice has no message content")
        return content

    async def generate_code(self, parameters: ArtifactParameters) -> str:
        """Ask the model for Move source describing ``parameters``."""
        return await self.send(build_generation_messages(parameters))

    async def analyze_code(self, source: str, artifact_type: ArtifactType) -> str:
        """Ask the model for a review narrative of compiled source."""
        return await self.send(build_analysis_messages(source, artifact_type))

    # --- Assistant ---

    async def chat_with_assistant(
        self,
        user_message: str,
        history: Iterable[Mapping[str, str]] = (),
    ) -> str:
        """
        Answer a DeFi question, continuing an earlier conversation.

        Args:
            user_message: New question from the user
            history: Earlier user/assistant turns, oldest first

        Raises:
            ValidationError: Blank message or malformed history
        """
        return await self.send(build_chat_messages(user_message, history))

    async def explain_concept(self, concept: str) -> str:
        """Explain a DeFi concept with an Aptos angle."""
        return await self.send(build_explanation_messages(concept))

    async def get_recommendations(self, user_context: str) -> str:
        return await self.send(build_recommendation_messages(user_context))
