from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Iterable, List, Optional

from tenacity import AsyncRetrying, before_sleep_log, retry_if_exception, stop_after_attempt

from edu_rag.config import Settings
from edu_rag.config import settings as default_settings
from edu_rag.errors import EduRagError, GenerationHTTPError
from edu_rag.llm_client import LLMClient
from edu_rag.models import Candidate
from edu_rag.prompts import SUMMARY_SYSTEM_PROMPT, build_summary_prompt
from edu_rag.retry import backoff_with_jitter, wait_retry_hint

log = logging.getLogger("edu_rag.summarize")

Sleep = Callable[[float], Awaitable[None]]

TRUNCATION_MARKER = "\n\n[... content truncated ...]"
FAILURE_PLACEHOLDER = "Failed to generate AI-grounded answer."
EMPTY_SUMMARY_FALLBACK = "Could not generate a relevant summary based on the report data."


def truncate_content(content: str, max_chars: int) -> str:
    if len(content) <= max_chars:
        return content
    return content[:max_chars] + TRUNCATION_MARKER


def _is_transient(exc: BaseException) -> bool:
    return isinstance(exc, GenerationHTTPError) and exc.is_transient


class SummarySynthesizer:
    """
    Produces a query-grounded answer from one document's content.

    Only 429/503 are retried (honoring the server's retry hint); anything
    else ends the attempt loop. Failures degrade to FAILURE_PLACEHOLDER.
    """

    def __init__(
        self,
        llm: LLMClient,
        config: Optional[Settings] = None,
        *,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._llm = llm
        self._settings = config or default_settings
        self._sleep = sleep

    def _retrying(self) -> AsyncRetrying:
        s = self._settings
        return AsyncRetrying(
            stop=stop_after_attempt(s.summary_max_attempts),
            wait=wait_retry_hint(
                backoff_with_jitter(s.backoff_base_s, s.backoff_jitter_s, s.max_backoff_s),
                max_s=s.max_backoff_s,
            ),
            retry=retry_if_exception(_is_transient),
            sleep=self._sleep,
            before_sleep=before_sleep_log(log, logging.WARNING),
            reraise=True,
        )

    async def summarize(self, content: str, query: str) -> str:
        prompt = build_summary_prompt(truncate_content(content, self._settings.summary_max_chars), query)

        try:
            text = await self._retrying()(self._llm.generate, prompt, system=SUMMARY_SYSTEM_PROMPT)
        except EduRagError as e:
            log.error("AI Service Error: failed to communicate with the summarization engine: %s", e)
            return FAILURE_PLACEHOLDER
        except Exception:
            log.exception("AI Service Error: unexpected failure while summarizing")
            return FAILURE_PLACEHOLDER

        return text or EMPTY_SUMMARY_FALLBACK

    async def summarize_all(self, candidates: Iterable[Candidate], query: str) -> List[Candidate]:
        """
        Summarize every candidate concurrently; order of the input is kept.
        """
        candidates = list(candidates)
        summaries = await asyncio.gather(*(self.summarize(c.document.content, query) for c in candidates))
        return [c.model_copy(update={"summary": s}) for c, s in zip(candidates, summaries)]
