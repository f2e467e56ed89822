"""
Prompt template for follow-up question generation.

Sent as a separate completion after the answer is final, so the model
only sees the answer text, not the sources.
"""

from __future__ import annotations

FOLLOWUP_SYSTEM_PROMPT = "You are a helpful AI assistant"


def build_followup_messages(answer: str) -> list[dict[str, str]]:
    """Ask for exactly three follow-up questions as a bare JSON string list."""
    user_prompt = f"""Generate three follow-up question based on the answer you just generated.
# Answer
{answer}

# Format of the response
Return the follow-up question as a json string list. Don't put your answer between ```json and ```, return the json string directly.
e.g.
[
    "What is the deductible?",
    "What is the co-pay?",
    "What is the out-of-pocket maximum?"
]"""
    return [
        {"role": "system", "content": FOLLOWUP_SYSTEM_PROMPT},
        {"role": "user", "content": user_prompt},
    ]
