from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from edu_rag.config import Settings
from edu_rag.config import settings as default_settings
from edu_rag.errors import StoreWriteError
from edu_rag.expansion import ExpansionClient
from edu_rag.llm_client import LLMClient
from edu_rag.models import Candidate, QueryState, RepairOutcome, SearchOutcome, SearchResponse, SparseVector
from edu_rag.repair import repair_knowledge_base
from edu_rag.similarity import rank, select_top_k
from edu_rag.store import DocumentStore
from edu_rag.summarize import Sleep, SummarySynthesizer
from edu_rag.vector_text import vectorize, vectorize_document

log = logging.getLogger("edu_rag.search")

MESSAGES = {
    SearchOutcome.NOT_READY: "Database connection is still initializing. Please wait a moment.",
    SearchOutcome.EXPANSION_IN_PROGRESS: "The knowledge base is being expanded for another query. Please try again shortly.",
    SearchOutcome.MISSING_CREDENTIAL: "The generation service API key is not configured.",
    SearchOutcome.EMPTY_QUERY: "Please enter a topic to search.",
    SearchOutcome.NO_DATA_FOUND: "The search returned no relevant reports.",
    SearchOutcome.SEARCH_FAILED: "Failed to execute the search operation.",
}


class RetrievalOrchestrator:
    """
    Runs one query end to end:
    vectorize -> scan store -> rank -> (expand if nothing passed) -> top-k -> summarize.

    Owns the readiness and expansion coordination state for one knowledge base.
    The expansion lock is local to this instance, not a distributed lock.
    """

    def __init__(
        self,
        store: DocumentStore,
        llm: LLMClient,
        config: Optional[Settings] = None,
        *,
        expansion: Optional[ExpansionClient] = None,
        synthesizer: Optional[SummarySynthesizer] = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._store = store
        self._llm = llm
        self._settings = config or default_settings
        self._expansion = expansion or ExpansionClient(llm, self._settings, sleep=sleep)
        self._synthesizer = synthesizer or SummarySynthesizer(llm, self._settings, sleep=sleep)
        self._expansion_lock = asyncio.Lock()
        self._ready = False

    @property
    def is_ready(self) -> bool:
        return self._ready

    @property
    def is_expanding(self) -> bool:
        return self._expansion_lock.locked()

    async def start(self) -> RepairOutcome:
        """
        Run the one-time repair pass. The knowledge base accepts queries
        only after it succeeds.
        """
        strategy = self._settings.repair_strategy
        try:
            outcome = await repair_knowledge_base(self._store, strategy)
        except StoreWriteError as e:
            log.error("Knowledge base not ready: %s", e)
            return RepairOutcome(strategy=strategy, repaired=e.repaired, ok=False, error=str(e))

        self._ready = True
        log.info("Platform Ready: the knowledge base is active and awaiting queries.")
        return outcome

    def _reject(self, query: str) -> Optional[SearchResponse]:
        if not self._ready:
            outcome = SearchOutcome.NOT_READY
        elif self.is_expanding:
            outcome = SearchOutcome.EXPANSION_IN_PROGRESS
        elif not self._llm.is_available:
            outcome = SearchOutcome.MISSING_CREDENTIAL
        elif not query or not query.strip():
            outcome = SearchOutcome.EMPTY_QUERY
        else:
            return None

        log.warning("Query rejected (%s)", outcome.value)
        return SearchResponse(outcome=outcome, message=MESSAGES[outcome])

    async def _expand(self, query: str, query_vector: SparseVector) -> List[Candidate]:
        async with self._expansion_lock:
            generated = await self._expansion.expand(query)
            if generated is None:
                return []

            document = generated.to_document()
            document.vector = vectorize_document(document)

            # A generated document that cannot be stored is not used for this query either
            try:
                document.id = await self._store.insert(document)
            except Exception as e:
                log.error("Generated document could not be persisted, dropping it: %s", e)
                return []

        log.info("Knowledge base expanded with document %s", document.id)
        return rank([document], query_vector, self._settings.similarity_threshold)

    async def search(self, query: str) -> SearchResponse:
        rejection = self._reject(query)
        if rejection is not None:
            return rejection

        state = QueryState.IDLE
        expanded = False

        def enter(next_state: QueryState) -> QueryState:
            log.debug("Query state %s -> %s", state.value, next_state.value)
            return next_state

        try:
            state = enter(QueryState.VECTORIZING)
            query_vector = vectorize(query)

            state = enter(QueryState.SCANNING)
            documents = await self._store.scan_all()
            candidates = rank(documents, query_vector, self._settings.similarity_threshold)
            log.info("Scanned %d documents, %d above threshold", len(documents), len(candidates))

            if not candidates:
                state = enter(QueryState.EXPANDING)
                expanded = True
                candidates = await self._expand(query, query_vector)
                if not candidates:
                    log.info("No Data Found for query: %s", query)
                    return SearchResponse(
                        outcome=SearchOutcome.NO_DATA_FOUND,
                        message=MESSAGES[SearchOutcome.NO_DATA_FOUND],
                        state=QueryState.DONE,
                        expanded=True,
                    )

            state = enter(QueryState.RANKING)
            top = select_top_k(candidates, self._settings.top_k)

            state = enter(QueryState.SYNTHESIZING)
            results = await self._synthesizer.summarize_all(top, query)

        except Exception:
            log.exception("Search Error: query failed in state %s", state.value)
            return SearchResponse(
                outcome=SearchOutcome.SEARCH_FAILED,
                message=MESSAGES[SearchOutcome.SEARCH_FAILED],
                state=QueryState.FAILED,
                expanded=expanded,
            )

        return SearchResponse(
            outcome=SearchOutcome.OK,
            message=f"Found {len(results)} relevant reports.",
            results=results,
            state=QueryState.DONE,
            expanded=expanded,
        )
