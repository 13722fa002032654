from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx
import openai
from openai import AsyncOpenAI

from edu_rag.config import Settings
from edu_rag.config import settings as default_settings
from edu_rag.errors import GenerationHTTPError, GenerationServiceError, NotReadyError
from edu_rag.retry import parse_retry_after

log = logging.getLogger("edu_rag.llm")


class LLMClient:
    """
    Thin async wrapper around the OpenAI SDK pointed at Gemini's
    OpenAI-compatible endpoint.

    SDK retries are disabled: callers own their retry policy and need to see
    every non-2xx status (with its retry hint) as a GenerationHTTPError.
    """

    def __init__(
        self,
        config: Optional[Settings] = None,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._settings = config or default_settings
        self._model = self._settings.gemini_model
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=httpx.Timeout(self._settings.request_timeout_s))
        self._client: Optional[AsyncOpenAI] = None

        if not self._settings.has_credentials:
            log.info("Generation API key not provided, LLM client unavailable")
            return

        self._client = AsyncOpenAI(
            api_key=self._settings.gemini_api_key,
            base_url=self._settings.gemini_base_url,
            http_client=self._http,
            max_retries=0,
            timeout=self._settings.request_timeout_s,
        )

    @property
    def is_available(self) -> bool:
        return self._client is not None

    @property
    def model(self) -> str:
        return self._model

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self) -> "LLMClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def generate(
        self,
        prompt: str,
        *,
        system: Optional[str] = None,
        response_schema: Optional[Dict[str, Any]] = None,
        schema_name: str = "response",
        temperature: float = 0.2,
    ) -> str:
        """
        Send one chat completion and return the text of the first choice
        ("" when the service returned no text).

        Raises GenerationHTTPError on non-2xx responses and
        GenerationServiceError when the service cannot be reached.
        """
        if self._client is None:
            raise NotReadyError("LLM client is not available")

        messages: List[Dict[str, str]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        kwargs: Dict[str, Any] = {}
        if response_schema is not None:
            kwargs["response_format"] = {
                "type": "json_schema",
                "json_schema": {"name": schema_name, "strict": True, "schema": response_schema},
            }

        log.debug("Sending prompt to LLM (%s chars)", len(prompt))

        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=messages,
                temperature=temperature,
                **kwargs,
            )
        except openai.APIStatusError as e:
            raise GenerationHTTPError(
                e.status_code,
                e.message,
                retry_after=parse_retry_after(e.response.headers),
            ) from e
        except openai.APIConnectionError as e:
            raise GenerationServiceError(f"generation service unreachable: {type(e).__name__}: {e}") from e
        # 200 responses the SDK cannot decode (non-JSON body, unexpected shape)
        except (openai.OpenAIError, ValueError) as e:
            raise GenerationServiceError(f"unusable generation response: {type(e).__name__}: {e}") from e

        # Without strict validation the SDK hands back the raw body for non-JSON content types
        try:
            choices = response.choices
            text = (choices[0].message.content or "") if choices else ""
        except (AttributeError, TypeError) as e:
            raise GenerationServiceError(f"unusable generation response: {e}") from e

        log.debug("Raw LLM output: %s", text)
        return text.strip()
