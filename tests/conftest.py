"""
Shared fixtures and test doubles.

- ScriptedLLM: stands in for LLMClient, replays scripted texts/exceptions
- RecordingSleep: replaces asyncio.sleep in retry loops and records delays
"""

import json
from typing import Any, Dict, List, Optional

import pytest

from edu_rag.config import Settings
from edu_rag.models import Document
from edu_rag.store import InMemoryDocumentStore


class ScriptedLLM:
    """
    Returns (or raises) the scripted items in order; the last item repeats.
    """

    def __init__(self, *items: Any, available: bool = True) -> None:
        self.items: List[Any] = list(items) or [""]
        self.calls: List[Dict[str, Any]] = []
        self.is_available = available

    async def generate(
        self,
        prompt: str,
        *,
        system: Optional[str] = None,
        response_schema: Optional[Dict[str, Any]] = None,
        schema_name: str = "response",
        temperature: float = 0.2,
    ) -> str:
        self.calls.append({"prompt": prompt, "system": system, "response_schema": response_schema})
        item = self.items.pop(0) if len(self.items) > 1 else self.items[0]
        if isinstance(item, BaseException):
            raise item
        return item


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(float(seconds))


class FailingInsertStore(InMemoryDocumentStore):
    async def insert(self, document: Document) -> str:
        raise OSError("disk full")


@pytest.fixture
def settings() -> Settings:
    return Settings(
        gemini_api_key="test-key-123",
        similarity_threshold=0.275,
        top_k=3,
        backoff_base_s=1.0,
        backoff_jitter_s=0.5,
        max_backoff_s=30.0,
    )


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def generated_json() -> str:
    return json.dumps(
        {
            "title": "Phonics Instruction and Early Reading Outcomes",
            "content": "Systematic phonics instruction improves early reading and literacy outcomes.",
            "keywords": ["Phonics", "reading", "literacy", "phonics"],
            "category": "Literacy",
            "publisher": "National Reading Panel",
            "url": "https://example.org/phonics",
        }
    )
