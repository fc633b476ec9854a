from __future__ import annotations

import re
from typing import Any

ALLOWED_CHARACTERS = re.compile(r"[0-9+\-*/().\s%^]+")
OPERATOR = re.compile(r"[+\-*/^%]")
BARE_NUMBER = re.compile(r"-?[0-9]+\.?[0-9]*")
DIGIT = re.compile(r"[0-9]")

MIN_EXPRESSION_LENGTH = 3


def has_allowed_characters(text: str) -> bool:
    return ALLOWED_CHARACTERS.fullmatch(text) is not None


def is_bare_number(text: str) -> bool:
    return BARE_NUMBER.fullmatch(text) is not None


def looks_like_expression(text: str) -> bool:
    """True when the text has an arithmetic operator or is a plain signed number."""
    return OPERATOR.search(text) is not None or is_bare_number(text)


def is_candidate_expression(text: Any) -> bool:
    """
    Decide whether launcher input is worth handing to the evaluator.

    This is a cheap pre-filter: it only looks at the character set and the rough
    shape of the text. Input such as ``"1++"`` passes here and is rejected later
    when it fails to parse.
    """
    if not isinstance(text, str):
        return False

    cleaned = text.strip()
    if not cleaned:
        return False

    if not has_allowed_characters(cleaned):
        return False

    if DIGIT.search(cleaned) is None:
        return False

    has_operator = OPERATOR.search(cleaned) is not None
    return (has_operator and len(cleaned) >= MIN_EXPRESSION_LENGTH) or is_bare_number(cleaned)
