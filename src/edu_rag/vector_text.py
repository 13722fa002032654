from __future__ import annotations

import re
from collections import Counter
from typing import List

from edu_rag.models import Document, SparseVector

_WORD_RE = re.compile(r"\w+")


def tokenize(text: str) -> List[str]:
    """
    Lower-case the text and return its maximal runs of word characters.
    Punctuation and whitespace are delimiters and are dropped.
    """
    if not text:
        return []
    return _WORD_RE.findall(text.lower())


def vectorize(text: str) -> SparseVector:
    """
    Term-frequency vector of the text. Empty or non-alphanumeric input gives {}.
    """
    return dict(Counter(tokenize(text)))


def build_vector_text(document: Document) -> str:
    """
    Build the text a document's vector is computed from:
    title, content, category and keywords, space separated.
    """
    parts = [document.title, document.content, document.category or ""]
    parts.extend(document.keywords)
    return " ".join(p.strip() for p in parts if p and p.strip())


def vectorize_document(document: Document) -> SparseVector:
    return vectorize(build_vector_text(document))
