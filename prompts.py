"""Prompt text and sampling parameters shared by the poem generators."""

from __future__ import annotations

SYSTEM_PROMPT = "Respond with just the poem, nothing else."

INSTRUCTION = "Write a short poem inspired by the artwork described by the <document>"

MAX_TOKENS = 500
TOP_P = 0.999
TOP_K = 250
TEMPERATURE = 1.0
STOP_SEQUENCES: list[str] = []


def build_prompt(description: str) -> str:
    """Wrap the artwork description in a document block followed by the instruction."""
    return f"<document>{description}</document>\n\n{INSTRUCTION}"
