from __future__ import annotations


SUMMARY_SYSTEM_PROMPT = (
    "You are a world-class AI assistant for educational research. "
    "Based ONLY on the provided report content, answer the user's question "
    "with a concise, factual summary. If the content is irrelevant, state so."
)


EXPANSION_SYSTEM_PROMPT = """You are a precise research librarian for an educational knowledge base.
You must return ONLY valid JSON.
Do not include explanations, markdown, or extra text.
"""


def build_summary_prompt(content: str, query: str) -> str:
    return f'User Question: "{query}".\n\nReport Content to base the answer on: "{content}"'


def build_expansion_prompt(query: str) -> str:
    """
    Build a strict prompt asking for exactly one authoritative source
    relevant to the query, as JSON matching GeneratedDocument.
    """
    return f"""
Find exactly ONE authoritative, recent document (research report, government
publication, or peer-reviewed review) that is directly relevant to the question
below, and describe it as a JSON object with this exact structure:

{{
  "title": "document title",
  "content": "detailed factual summary of the document's findings, several paragraphs",
  "keywords": ["keyword1", "keyword2", "keyword3"],
  "category": "short subject category",
  "publisher": "publishing organization",
  "url": "link to the document"
}}

Rules:
- Output ONLY JSON
- No markdown
- No trailing text
- Keywords must be short lowercase strings
- Use an empty string for category, publisher or url if unknown

Question:
{query}
""".strip()
