from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

SparseVector = Dict[str, int]


class Document(BaseModel):
    """
    One knowledge-base record as held by the document store.
    `vector` is derived from the text fields and never hand-authored.
    """

    id: Optional[str] = Field(default=None, description="Assigned by the store on insert")

    title: str = ""
    content: str = Field(default="", description="Grounding text for summaries")
    keywords: List[str] = Field(default_factory=list)

    category: Optional[str] = None
    publisher: Optional[str] = None
    url: Optional[str] = None

    vector: Optional[SparseVector] = None

    @property
    def has_vector(self) -> bool:
        return self.vector is not None


class Candidate(BaseModel):
    """
    Query-time pairing of a document with its similarity score.
    Lives for one query only; never persisted.
    """

    document: Document
    score: float = Field(..., ge=0.0, le=1.0)
    summary: Optional[str] = None


class QueryState(str, Enum):
    IDLE = "idle"
    VECTORIZING = "vectorizing"
    SCANNING = "scanning"
    EXPANDING = "expanding"
    RANKING = "ranking"
    SYNTHESIZING = "synthesizing"
    DONE = "done"
    FAILED = "failed"


class SearchOutcome(str, Enum):
    OK = "ok"
    NOT_READY = "not_ready"
    EXPANSION_IN_PROGRESS = "expansion_in_progress"
    MISSING_CREDENTIAL = "missing_credential"
    EMPTY_QUERY = "empty_query"
    NO_DATA_FOUND = "no_data_found"
    SEARCH_FAILED = "search_failed"


class SearchResponse(BaseModel):
    """
    Result of one query. Rejected queries never leave IDLE.
    """

    outcome: SearchOutcome
    message: str = ""
    results: List[Candidate] = Field(default_factory=list)
    state: QueryState = QueryState.IDLE
    expanded: bool = False

    @property
    def ok(self) -> bool:
        return self.outcome == SearchOutcome.OK


class RepairOutcome(BaseModel):
    """
    Summary of one repair pass. `ok` gates readiness for queries.
    """

    strategy: str
    scanned: int = 0
    repaired: int = 0
    already_migrated: bool = False
    ok: bool = True
    error: Optional[str] = None
