"""Text-generation backend client (Hugging Face inference router).

Sends a system prompt and a user prompt to the router's chat-completions
endpoint. When the configured model is not served as a chat model, providers
that expose a plain completions route get one completion-style attempt.
"""

from dataclasses import dataclass
from typing import Any

import httpx
from loguru import logger

from runplan.config.settings import Settings, settings
from runplan.core.errors import DIAGNOSTIC_MAX_CHARS, ConfigurationError, ContextTooLargeError, UpstreamError, truncate

COMPLETIONS_PROVIDERS = frozenset({"featherless-ai"})
DEFAULT_TEMPERATURE = 0.1
DEFAULT_TOP_P = 0.85


@dataclass(frozen=True)
class GenerationResult:
    text: str
    model: str


def split_model_provider(model: str) -> tuple[str, str | None]:
    """Split "org/model:provider" into the base model and the provider suffix."""
    index = model.rfind(":")
    if index <= 0 or index >= len(model) - 1:
        return model, None
    return model[:index], model[index + 1 :]


def is_not_chat_model_error(status_code: int, body: str) -> bool:
    if status_code == 404:
        return True
    if status_code != 400:
        return False
    lowered = body.lower()
    return "not a chat model" in lowered or "model_not_supported" in lowered


def is_context_length_error(message: str) -> bool:
    lowered = message.lower()
    return (
        "context_length_exceeded" in lowered
        or "maximum context length" in lowered
        or ("prompt has" in lowered and "exceeds" in lowered)
    )


def extract_chat_content(payload: dict[str, Any]) -> str | None:
    """Read the assistant text from a chat-completions payload.

    Handles plain string content, lists of typed chunks (only "text" chunks are
    kept) and providers that answer with a `text` field on the choice.
    """
    choices = payload.get("choices") or []
    first = choices[0] if choices and isinstance(choices[0], dict) else {}
    message = first.get("message") if isinstance(first.get("message"), dict) else {}
    content = message.get("content")

    if isinstance(content, str) and content.strip():
        return content.strip()
    if isinstance(content, list):
        text = "".join(
            chunk.get("text", "")
            for chunk in content
            if isinstance(chunk, dict) and chunk.get("type") == "text" and isinstance(chunk.get("text"), str)
        ).strip()
        if text:
            return text
    fallback = first.get("text")
    if isinstance(fallback, str) and fallback.strip():
        return fallback.strip()
    return None


def extract_completion_content(payload: dict[str, Any]) -> str | None:
    choices = payload.get("choices") or []
    first = choices[0] if choices and isinstance(choices[0], dict) else {}
    text = first.get("text")
    if isinstance(text, str) and text.strip():
        return text.strip()
    return None


def completion_prompt(system_prompt: str, user_prompt: str) -> str:
    return "\n".join(["[SYSTEM]", system_prompt, "", "[USER]", user_prompt, "", "[ASSISTANT]"])


def _json_payload(response: httpx.Response) -> dict[str, Any]:
    try:
        payload = response.json()
    except ValueError as e:
        raise UpstreamError("Text-generation backend returned a non-JSON body", status_code=response.status_code, detail=response.text) from e
    return payload if isinstance(payload, dict) else {}


def _failure(message: str, status_code: int | None, body: str) -> UpstreamError:
    if is_context_length_error(body):
        return ContextTooLargeError(message, status_code=status_code, detail=body)
    return UpstreamError(message, status_code=status_code, detail=body)


class HuggingFaceTextClient:
    """Async client for the Hugging Face router.

    Args:
        config: Settings to read credentials, model and endpoints from
        http_client: Optional shared httpx.AsyncClient (a short-lived client is
            opened per call otherwise)
    """

    def __init__(self, config: Settings | None = None, http_client: httpx.AsyncClient | None = None) -> None:
        self.config = config or settings
        self._http_client = http_client

    @property
    def model(self) -> str:
        return self.config.hf_model

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.config.hf_api_key}",
        }

    async def _post(self, url: str, body: dict[str, Any]) -> httpx.Response:
        try:
            if self._http_client is not None:
                return await self._http_client.post(url, json=body, headers=self._headers())
            async with httpx.AsyncClient(timeout=self.config.hf_timeout_seconds) as client:
                return await client.post(url, json=body, headers=self._headers())
        except httpx.RequestError as e:
            logger.warning("Text-generation backend unreachable", url=url, error=str(e))
            raise UpstreamError(f"Text-generation backend unreachable: {e}") from e

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        max_tokens: int,
        temperature: float = DEFAULT_TEMPERATURE,
        top_p: float = DEFAULT_TOP_P,
    ) -> GenerationResult:
        """Run one generation.

        Args:
            system_prompt: Instructions for the model
            user_prompt: Request payload
            max_tokens: Generation ceiling
            temperature: Sampling temperature
            top_p: Nucleus sampling threshold

        Returns:
            GenerationResult with the generated text and the model label

        Raises:
            ConfigurationError: If HF_API_KEY is not configured
            ContextTooLargeError: If the backend reports a context-length overflow
            UpstreamError: For any other non-success answer or empty content
        """
        if not self.config.hf_api_key:
            raise ConfigurationError("HF_API_KEY is not configured (a Hugging Face token is required)")

        model = self.config.hf_model
        base_model, provider = split_model_provider(model)
        logger.debug("Calling text-generation backend", model=model, max_tokens=max_tokens)

        response = await self._post(
            self.config.hf_router_url,
            {
                "model": model,
                "messages": [
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                "temperature": temperature,
                "top_p": top_p,
                "max_tokens": max_tokens,
                "stream": False,
            },
        )
        if response.is_success:
            content = extract_chat_content(_json_payload(response))
            if not content:
                raise UpstreamError("Text-generation backend returned empty content", status_code=response.status_code)
            return GenerationResult(text=content, model=model)

        body = response.text
        if not is_not_chat_model_error(response.status_code, body):
            logger.warning("Text-generation backend failed", status_code=response.status_code, model=model)
            raise _failure(
                f"Text-generation backend failed ({response.status_code}): {truncate(body, DIAGNOSTIC_MAX_CHARS)}",
                response.status_code,
                body,
            )

        if provider not in COMPLETIONS_PROVIDERS:
            suggested = model if ":" in model else f"{model}:featherless-ai"
            raise UpstreamError(
                f"Model {model} is not available on the chat router. "
                f"Try a model/provider pair served by an inference provider, e.g. HF_MODEL={suggested}",
                status_code=response.status_code,
                detail=body,
            )

        logger.info("Model is not served as chat, falling back to completions", model=base_model, provider=provider)
        completions_url = f"{self.config.hf_completions_base_url.rstrip('/')}/{provider}/v1/completions"
        response = await self._post(
            completions_url,
            {
                "model": base_model,
                "prompt": completion_prompt(system_prompt, user_prompt),
                "max_tokens": max_tokens,
                "temperature": temperature,
                "top_p": top_p,
                "stream": False,
            },
        )
        if not response.is_success:
            body = response.text
            raise _failure(
                f"Text-generation backend failed ({response.status_code}) on {provider} completions "
                f"({base_model}): {truncate(body, DIAGNOSTIC_MAX_CHARS)}",
                response.status_code,
                body,
            )
        content = extract_completion_content(_json_payload(response))
        if not content:
            raise UpstreamError("Text-generation backend returned empty content", status_code=response.status_code)
        return GenerationResult(text=content, model=f"{base_model}:{provider} (completions)")
