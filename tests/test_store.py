import asyncio
import json

import pytest

from edu_rag.models import Document
from edu_rag.store import DocumentStore, InMemoryDocumentStore, JsonlDocumentStore


class TestInMemoryDocumentStore:
    def test_satisfies_protocol(self):
        assert isinstance(InMemoryDocumentStore(), DocumentStore)

    @pytest.mark.asyncio
    async def test_insert_assigns_id(self):
        store = InMemoryDocumentStore()
        doc_id = await store.insert(Document(title="Phonics"))

        docs = await store.scan_all()
        assert len(docs) == 1
        assert docs[0].id == doc_id
        assert docs[0].title == "Phonics"

    @pytest.mark.asyncio
    async def test_update_fields_touches_only_named_fields(self):
        store = InMemoryDocumentStore([Document(id="d1", title="Phonics", content="text", keywords=["a"])])
        await store.update_fields("d1", {"vector": {"phonics": 1}})

        doc = store.get("d1")
        assert doc.vector == {"phonics": 1}
        assert doc.title == "Phonics"
        assert doc.content == "text"
        assert doc.keywords == ["a"]

    @pytest.mark.asyncio
    async def test_update_unknown_id_raises(self):
        store = InMemoryDocumentStore()
        with pytest.raises(KeyError):
            await store.update_fields("missing", {"vector": {}})

    @pytest.mark.asyncio
    async def test_scan_returns_copies(self):
        store = InMemoryDocumentStore([Document(id="d1", title="Phonics")])
        docs = await store.scan_all()
        docs[0].title = "changed"
        assert store.get("d1").title == "Phonics"


class TestJsonlDocumentStore:
    @pytest.mark.asyncio
    async def test_missing_file_is_empty_store(self, tmp_path):
        store = JsonlDocumentStore(tmp_path / "kb.jsonl")
        assert await store.scan_all() == []

    @pytest.mark.asyncio
    async def test_insert_then_scan(self, tmp_path):
        path = tmp_path / "kb.jsonl"
        store = JsonlDocumentStore(path)

        first = await store.insert(Document(title="Phonics", keywords=["literacy"], vector={"phonics": 1}))
        second = await store.insert(Document(title="Hybrid learning"))

        docs = await store.scan_all()
        assert [d.id for d in docs] == [first, second]
        assert docs[0].vector == {"phonics": 1}
        assert len(path.read_text(encoding="utf-8").splitlines()) == 2

    @pytest.mark.asyncio
    async def test_update_fields_rewrites_one_document(self, tmp_path):
        path = tmp_path / "kb.jsonl"
        store = JsonlDocumentStore(path)
        a = await store.insert(Document(title="A", content="alpha"))
        b = await store.insert(Document(title="B", content="beta"))

        await store.update_fields(b, {"vector": {"beta": 1}})

        docs = {d.id: d for d in await store.scan_all()}
        assert docs[a].vector is None
        assert docs[b].vector == {"beta": 1}
        assert docs[b].content == "beta"

        lines = [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]
        assert [obj["id"] for obj in lines] == [a, b]

    @pytest.mark.asyncio
    async def test_update_unknown_id_raises(self, tmp_path):
        store = JsonlDocumentStore(tmp_path / "kb.jsonl")
        await store.insert(Document(title="A"))
        with pytest.raises(KeyError):
            await store.update_fields("missing", {"vector": {}})

    @pytest.mark.asyncio
    async def test_concurrent_inserts_survive_update_rewrite(self, tmp_path):
        store = JsonlDocumentStore(tmp_path / "kb.jsonl")
        target = await store.insert(Document(title="Target", content="phonics"))

        results = await asyncio.gather(
            store.update_fields(target, {"vector": {"phonics": 1}}),
            *(store.insert(Document(title=f"Doc {i}")) for i in range(20)),
            store.update_fields(target, {"keywords": ["literacy"]}),
        )

        docs = {d.id: d for d in await store.scan_all()}
        inserted = [r for r in results if r is not None]
        assert len(docs) == 21
        assert set(inserted) <= set(docs)
        assert docs[target].vector == {"phonics": 1}
        assert docs[target].keywords == ["literacy"]
