"""
Prompt template for query planning.

The model sees only the latest user question and must return a bare
search query, no commentary.
"""

from __future__ import annotations

QUERY_PLANNER_SYSTEM_PROMPT = """You are a helpful AI assistant, generate search query for followup question.
Make your respond simple and precise. Return the query only, do not return any other text.
e.g.
Northwind Health Plus AND standard plan.
standard plan AND dental AND employee benefit.
"""


def build_query_planner_messages(question: str) -> list[dict[str, str]]:
    """Return the system instruction followed by the question as the only user message."""
    return [
        {"role": "system", "content": QUERY_PLANNER_SYSTEM_PROMPT},
        {"role": "user", "content": question},
    ]
