from typing import Any, Dict

import pytest

from edu_rag.errors import StoreWriteError
from edu_rag.models import Document
from edu_rag.repair import repair_knowledge_base
from edu_rag.store import InMemoryDocumentStore
from edu_rag.vector_text import vectorize


class FailOnSecondWriteStore(InMemoryDocumentStore):
    def __init__(self, documents):
        super().__init__(documents)
        self.attempted = 0

    async def update_fields(self, document_id: str, fields: Dict[str, Any]) -> None:
        self.attempted += 1
        if self.attempted == 2:
            raise OSError("write rejected")
        await super().update_fields(document_id, fields)


def _unvectorized(doc_id, title):
    return Document(id=doc_id, title=title, content=f"{title} content", category="literacy", keywords=["k12"])


@pytest.mark.asyncio
async def test_missing_vector_is_backfilled():
    doc = _unvectorized("d1", "Phonics")
    store = InMemoryDocumentStore([doc])

    outcome = await repair_knowledge_base(store)

    assert outcome.ok
    assert outcome.repaired == 1
    assert store.get("d1").vector == vectorize("Phonics Phonics content literacy k12")


@pytest.mark.asyncio
async def test_second_pass_performs_no_writes():
    store = InMemoryDocumentStore([_unvectorized("d1", "Phonics"), _unvectorized("d2", "Algebra")])

    await repair_knowledge_base(store)
    writes_after_first = store.writes
    before = store.get("d1")

    outcome = await repair_knowledge_base(store)

    assert writes_after_first == 2
    assert store.writes == writes_after_first
    assert outcome.repaired == 0
    assert outcome.already_migrated
    assert store.get("d1") == before


@pytest.mark.asyncio
async def test_first_document_with_vector_skips_whole_store():
    store = InMemoryDocumentStore([
        Document(id="d1", title="Phonics", vector={"phonics": 1}),
        _unvectorized("d2", "Algebra"),
    ])

    outcome = await repair_knowledge_base(store, "first_document")

    assert outcome.already_migrated
    assert store.writes == 0
    assert store.get("d2").vector is None


@pytest.mark.asyncio
async def test_full_scan_repairs_past_a_vectorized_first_document():
    store = InMemoryDocumentStore([
        Document(id="d1", title="Phonics", vector={"phonics": 1}),
        _unvectorized("d2", "Algebra"),
    ])

    outcome = await repair_knowledge_base(store, "full_scan")

    assert outcome.repaired == 1
    assert store.get("d1").vector == {"phonics": 1}
    assert store.get("d2").vector is not None


@pytest.mark.asyncio
async def test_empty_store_is_a_no_op():
    store = InMemoryDocumentStore()
    outcome = await repair_knowledge_base(store)
    assert outcome.ok
    assert outcome.scanned == 0
    assert store.writes == 0


@pytest.mark.asyncio
async def test_write_failure_aborts_and_keeps_partial_repair():
    store = FailOnSecondWriteStore([
        _unvectorized("d1", "Phonics"),
        _unvectorized("d2", "Algebra"),
        _unvectorized("d3", "Geometry"),
    ])

    with pytest.raises(StoreWriteError) as exc_info:
        await repair_knowledge_base(store)

    assert exc_info.value.document_id == "d2"
    assert exc_info.value.repaired == 1
    assert store.attempted == 2  # d3 never attempted
    assert store.get("d1").vector is not None
    assert store.get("d2").vector is None
    assert store.get("d3").vector is None
