from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any, Iterable, List

from edu_rag.models import Candidate, Document


def _norm(vector: Mapping) -> float:
    return math.sqrt(sum(v * v for v in vector.values()))


def similarity(a: Any, b: Any) -> float:
    """
    Cosine similarity of two sparse count vectors, in [0, 1].

    Returns 0.0 when either side is empty, not a mapping, or has zero norm.
    """
    if not isinstance(a, Mapping) or not isinstance(b, Mapping):
        return 0.0
    if not a or not b:
        return 0.0

    norm_a = _norm(a)
    norm_b = _norm(b)
    if norm_a == 0 or norm_b == 0:
        return 0.0

    # iterate the smaller vector for the dot product
    small, large = (a, b) if len(a) <= len(b) else (b, a)
    dot = sum(count * large[token] for token, count in small.items() if token in large)

    score = dot / (norm_a * norm_b)
    return max(0.0, min(1.0, score))


def rank(documents: Iterable[Document], query_vector: Mapping, threshold: float) -> List[Candidate]:
    """
    Score every document against the query vector and keep those
    scoring strictly above the threshold. Scan order is preserved.
    """
    kept: List[Candidate] = []
    for doc in documents:
        score = similarity(query_vector, doc.vector)
        if score > threshold:
            kept.append(Candidate(document=doc, score=score))
    return kept


def select_top_k(scored: Iterable[Candidate], k: int) -> List[Candidate]:
    """
    Highest scores first, truncated to k. Equal scores keep their scan order.
    """
    if k <= 0:
        return []
    return sorted(scored, key=lambda c: c.score, reverse=True)[:k]
