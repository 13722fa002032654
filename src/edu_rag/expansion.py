from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from tenacity import AsyncRetrying, before_sleep_log, retry_if_exception_type, stop_after_attempt

from edu_rag.config import Settings
from edu_rag.config import settings as default_settings
from edu_rag.errors import EduRagError, GenerationServiceError
from edu_rag.llm_client import LLMClient
from edu_rag.llm_parser import parse_llm_output
from edu_rag.llm_schema import KNOWLEDGE_DOCUMENT_SCHEMA, GeneratedDocument
from edu_rag.prompts import EXPANSION_SYSTEM_PROMPT, build_expansion_prompt
from edu_rag.retry import backoff_with_jitter

log = logging.getLogger("edu_rag.expansion")

Sleep = Callable[[float], Awaitable[None]]


class ExpansionClient:
    """
    Asks the generation service for one brand-new document when retrieval
    finds nothing. Never raises: every failure means "no document found".
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
            stop=stop_after_attempt(s.expansion_max_attempts),
            wait=backoff_with_jitter(s.backoff_base_s, s.backoff_jitter_s, s.max_backoff_s),
            retry=retry_if_exception_type(GenerationServiceError),
            sleep=self._sleep,
            before_sleep=before_sleep_log(log, logging.WARNING),
            reraise=True,
        )

    async def expand(self, query: str) -> Optional[GeneratedDocument]:
        log.info("Expanding knowledge base for query: %s", query)

        try:
            raw = await self._retrying()(
                self._llm.generate,
                build_expansion_prompt(query),
                system=EXPANSION_SYSTEM_PROMPT,
                response_schema=KNOWLEDGE_DOCUMENT_SCHEMA,
                schema_name="knowledge_document",
            )
        except EduRagError as e:
            log.error("Expansion abandoned: %s", e)
            return None
        except Exception:
            log.exception("Expansion abandoned after an unexpected failure")
            return None

        # Malformed output is not retried
        try:
            generated = parse_llm_output(raw)
        except ValueError as e:
            log.warning("Expansion returned unusable JSON: %s", e)
            return None

        log.info("Expansion produced document: %s", generated.title)
        return generated
