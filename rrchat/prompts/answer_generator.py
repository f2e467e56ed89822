"""
Prompt templates for answer generation.

Two grounding variants: text-only, and multimodal when supporting
images were retrieved.  Both require a bare ``{answer, thoughts}``
JSON object.
"""

from __future__ import annotations

from typing import Any

from rrchat.prompts.constants import ANSWER_SYSTEM_PROMPT
from rrchat.schemas.chat import ChatTurn


def build_text_grounding_prompt(document_contents: str) -> str:
    return f""" ## Source ##
{document_contents}
## End ##

You answer needs to be a json object with the following format.
{{
    "answer": // the answer to the question, add a source reference to the end of each sentence. e.g. Apple is a fruit [reference1.pdf][reference2.pdf]. If no source available, put the answer as I don't know.
    "thoughts": // brief thoughts on how you came up with the answer, e.g. what sources you used, what you thought about, etc.
}}
Don't put your answer between ```json and ```, return the json string directly."""


def build_image_grounding_prompt(document_contents: str) -> str:
    return f"""## Source ##
{document_contents}
## End ##

Answer question based on available source and images.
Your answer needs to be a json object with answer and thoughts field.
Don't put your answer between ```json and ```, return the json string directly. e.g {{"answer": "I don't know", "thoughts": "I don't know"}}"""


def build_grounding_message(
    document_contents: str,
    image_urls: list[str] | None = None,
) -> dict[str, Any]:
    """
    Build the final user message carrying the sources.

    With image URLs the content is a list of one text block followed by
    one ``image_url`` block per image.
    """
    if not image_urls:
        return {"role": "user", "content": build_text_grounding_prompt(document_contents)}

    content: list[dict[str, Any]] = [
        {"type": "text", "text": build_image_grounding_prompt(document_contents)},
    ]
    for url in image_urls:
        content.append({"type": "image_url", "image_url": {"url": url}})
    return {"role": "user", "content": content}


def build_answer_messages(
    history: list[ChatTurn],
    grounding_message: dict[str, Any],
) -> list[dict[str, Any]]:
    """System persona, then the turns as alternating user/assistant messages, then the sources."""
    messages: list[dict[str, Any]] = [{"role": "system", "content": ANSWER_SYSTEM_PROMPT}]
    for turn in history:
        messages.append({"role": "user", "content": turn.user})
        if turn.bot is not None:
            messages.append({"role": "assistant", "content": turn.bot})
    messages.append(grounding_message)
    return messages
