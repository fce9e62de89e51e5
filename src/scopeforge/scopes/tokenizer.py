"""Tokenizer for scope expressions.

Splits on the operator characters ``( ) | & !``; everything between them is
trimmed and kept as a literal scope tag.
"""

import re

OPERATORS = ("|", "&", "!")
LPAREN = "("
RPAREN = ")"
WILDCARD = "*"

_SPLIT_PATTERN = re.compile(r"([()|&!])")


def tokenize(expression: str) -> list[str]:
    """Tokenize a scope expression.

    Usage:
        tokenize("public | (private & !sensitive)")
        # ['public', '|', '(', 'private', '&', '!', 'sensitive', ')']
    """
    parts = (part.strip() for part in _SPLIT_PATTERN.split(expression))
    return [part for part in parts if part]


def is_operator(token: str) -> bool:
    return token in OPERATORS


def is_literal(token: str) -> bool:
    return token not in OPERATORS and token not in (LPAREN, RPAREN)
