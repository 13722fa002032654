from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from edu_rag.models import Document


class GeneratedDocument(BaseModel):
    """
    Strict schema for a knowledge-base document written by the LLM.
    The LLM MUST return JSON that conforms to this model.
    """

    title: str = Field(..., description="Title of the source document")
    content: str = Field(..., description="Factual summary of the source document")
    keywords: List[str] = Field(..., description="Short lowercase topic tags")
    category: Optional[str] = None
    publisher: Optional[str] = None
    url: Optional[str] = None

    @field_validator("title", "content")
    @classmethod
    def text_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v.strip()

    @field_validator("keywords")
    @classmethod
    def clean_keywords(cls, v: List[str]) -> List[str]:
        cleaned = []
        for k in v:
            k = k.strip().lower()
            if k and k not in cleaned:
                cleaned.append(k)
        return cleaned

    @field_validator("category", "publisher", "url")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None

    def to_document(self) -> Document:
        return Document(**self.model_dump())


# Sent as the strict response schema; every field is required so the model cannot drop one.
KNOWLEDGE_DOCUMENT_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "title": {"type": "string"},
        "content": {"type": "string"},
        "keywords": {"type": "array", "items": {"type": "string"}},
        "category": {"type": "string"},
        "publisher": {"type": "string"},
        "url": {"type": "string"},
    },
    "required": ["title", "content", "keywords", "category", "publisher", "url"],
    "additionalProperties": False,
}
