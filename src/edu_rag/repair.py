from __future__ import annotations

import logging
from typing import Literal

from edu_rag.errors import StoreWriteError
from edu_rag.models import RepairOutcome
from edu_rag.store import DocumentStore
from edu_rag.vector_text import vectorize_document

log = logging.getLogger("edu_rag.repair")

RepairStrategy = Literal["first_document", "full_scan"]


async def repair_knowledge_base(
    store: DocumentStore,
    strategy: RepairStrategy = "first_document",
) -> RepairOutcome:
    """
    Attach a vector to every stored document that lacks one.

    Strategies:
    - first_document: if the first scanned document already has a vector,
      the whole store is assumed migrated and nothing is written.
      A store whose first document was repaired mid-migration is mis-detected.
    - full_scan: always look at every document.

    Only the `vector` field is written. The first failed write aborts the
    pass with StoreWriteError; documents repaired before it stay repaired.
    """
    documents = await store.scan_all()
    outcome = RepairOutcome(strategy=strategy, scanned=len(documents))

    if not documents:
        log.info("Repair: store is empty, nothing to do")
        return outcome

    if strategy == "first_document" and documents[0].has_vector:
        log.info("Repair: first document already vectorized, skipping (%d scanned)", len(documents))
        outcome.already_migrated = True
        return outcome

    for doc in documents:
        if doc.has_vector:
            continue
        try:
            await store.update_fields(doc.id, {"vector": vectorize_document(doc)})
        except Exception as e:
            log.error("Repair aborted after %d writes: %s", outcome.repaired, e)
            raise StoreWriteError(doc.id, e, repaired=outcome.repaired) from e
        outcome.repaired += 1

    log.info("Repair finished: %s", outcome.model_dump())
    return outcome
