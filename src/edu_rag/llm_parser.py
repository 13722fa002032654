from __future__ import annotations

import json

from edu_rag.llm_schema import GeneratedDocument


def parse_llm_output(raw_text: str) -> GeneratedDocument:
    """
    Parse and validate raw LLM output.
    Raises ValueError if JSON or schema is invalid.
    """
    try:
        data = json.loads(raw_text)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON from LLM: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object from LLM, got {type(data).__name__}")

    return GeneratedDocument.model_validate(data)
