"""
Document store collaborators.

The engine only needs three operations from a store: scan everything,
insert one document, and update named fields of one document. Writes are
single-document and non-transactional.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import uuid
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Protocol, runtime_checkable

from edu_rag.io import append_jsonl, iter_jsonl, write_jsonl
from edu_rag.models import Document

log = logging.getLogger("edu_rag.store")


@runtime_checkable
class DocumentStore(Protocol):
    async def scan_all(self) -> List[Document]:
        """Every stored document, in the store's natural order."""
        ...

    async def insert(self, document: Document) -> str:
        """Persist a new document and return the id the store assigned."""
        ...

    async def update_fields(self, document_id: str, fields: Dict[str, Any]) -> None:
        """Set only the named fields on an existing document."""
        ...


def _new_id() -> str:
    return uuid.uuid4().hex


class InMemoryDocumentStore:
    """
    Dict-backed store for tests and local development.
    Returns copies so callers cannot mutate stored state by accident.
    """

    def __init__(self, documents: Optional[Iterable[Document]] = None) -> None:
        self._documents: Dict[str, Document] = {}
        self.writes = 0
        for doc in documents or []:
            doc_id = doc.id or _new_id()
            self._documents[doc_id] = doc.model_copy(update={"id": doc_id}, deep=True)

    async def scan_all(self) -> List[Document]:
        return [d.model_copy(deep=True) for d in self._documents.values()]

    async def insert(self, document: Document) -> str:
        doc_id = _new_id()
        self._documents[doc_id] = document.model_copy(update={"id": doc_id}, deep=True)
        self.writes += 1
        return doc_id

    async def update_fields(self, document_id: str, fields: Dict[str, Any]) -> None:
        if document_id not in self._documents:
            raise KeyError(f"Unknown document id: {document_id}")
        current = self._documents[document_id]
        self._documents[document_id] = current.model_copy(update=dict(fields), deep=True)
        self.writes += 1

    def get(self, document_id: str) -> Optional[Document]:
        doc = self._documents.get(document_id)
        return doc.model_copy(deep=True) if doc else None

    def __len__(self) -> int:
        return len(self._documents)


class JsonlDocumentStore:
    """
    One document per line in a JSONL file. A missing file is an empty store.
    Blocking file I/O runs in a worker thread; reads and writes of this
    instance are serialized so an update rewrite never drops a concurrent
    insert. Other processes writing the same file are not coordinated.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._lock = threading.Lock()

    def _read_unlocked(self) -> List[Document]:
        if not self.path.exists():
            return []
        return [Document.model_validate(obj) for obj in iter_jsonl(self.path)]

    def _read_all(self) -> List[Document]:
        with self._lock:
            return self._read_unlocked()

    def _append(self, document: Document) -> None:
        with self._lock:
            append_jsonl(self.path, document.model_dump(mode="json"))

    def _update(self, document_id: str, fields: Dict[str, Any]) -> None:
        with self._lock:
            docs = self._read_unlocked()
            for i, doc in enumerate(docs):
                if doc.id == document_id:
                    docs[i] = doc.model_copy(update=dict(fields))
                    break
            else:
                raise KeyError(f"Unknown document id: {document_id}")
            write_jsonl(self.path, (d.model_dump(mode="json") for d in docs))

    async def scan_all(self) -> List[Document]:
        return await asyncio.to_thread(self._read_all)

    async def insert(self, document: Document) -> str:
        doc_id = _new_id()
        await asyncio.to_thread(self._append, document.model_copy(update={"id": doc_id}))
        log.debug("Inserted document %s into %s", doc_id, self.path)
        return doc_id

    async def update_fields(self, document_id: str, fields: Dict[str, Any]) -> None:
        await asyncio.to_thread(self._update, document_id, fields)
        log.debug("Updated %s on document %s", sorted(fields), document_id)
