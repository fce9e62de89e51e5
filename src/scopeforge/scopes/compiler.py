"""Compiler for scope expressions.

Consumes the postfix token sequence with an operand stack and produces a
single ScopeExpr tree:

    parse("public | private & !sensitive")
"""

import logging
from functools import lru_cache

from scopeforge.scopes.errors import ParseError
from scopeforge.scopes.nodes import Intersect, Literal, Negate, ScopeExpr, Union, Wildcard
from scopeforge.scopes.precedence import to_postfix
from scopeforge.scopes.tokenizer import WILDCARD, tokenize

logger = logging.getLogger(__name__)

PARSE_CACHE_SIZE = 256


def compile_postfix(steps: list[str], strict: bool = False) -> ScopeExpr:
    """Build an expression tree from postfix tokens.

    Args:
        steps: Postfix tokens as produced by to_postfix()
        strict: Reject operands left over once compilation finishes

    Returns:
        The root node

    Raises:
        ParseError: On missing operands, an empty expression, or (strict)
            leftover operands
    """
    stack: list[ScopeExpr] = []

    for step in steps:
        if step in ("|", "&"):
            if len(stack) < 2:
                raise ParseError(f"Operator '{step}' requires two operands")
            right = stack.pop()
            left = stack.pop()
            node_class = Union if step == "|" else Intersect
            stack.append(node_class(left, right))

        elif step == "!":
            if not stack:
                raise ParseError("Operator '!' requires an operand")
            stack.append(Negate(stack.pop()))

        elif step == WILDCARD:
            stack.append(Wildcard())

        else:
            stack.append(Literal(step))

    if not stack:
        raise ParseError("Empty scope expression")

    if len(stack) > 1:
        if strict:
            raise ParseError(f"Missing operator between {len(stack)} operands")
        logger.warning(
            "Discarding %d unused operand(s) in scope expression", len(stack) - 1
        )

    return stack[-1]


def parse_stages(
    expression: str, strict: bool = False
) -> tuple[list[str], list[str], ScopeExpr]:
    """Compile a scope expression, keeping the intermediate forms.

    Returns:
        ``(tokens, postfix, compiled)``

    Raises:
        ParseError: If the expression is malformed; the error carries the
            expression text
    """
    try:
        tokens = tokenize(expression)
        steps = to_postfix(tokens, strict=strict)
        compiled = compile_postfix(steps, strict=strict)
    except ParseError as e:
        if e.expression is not None:
            raise
        raise ParseError(str(e), expression) from None

    logger.debug("Compiled scope expression %r -> %s", expression, compiled)
    return tokens, steps, compiled


def parse(expression: str, strict: bool = False) -> ScopeExpr:
    """Compile a scope expression into a reusable ScopeExpr.

    Args:
        expression: The expression text, e.g. ``"*&!sensitive"``
        strict: Raise on malformed input that lenient mode tolerates
            (unmatched ')', operands without an operator between them)

    Returns:
        The compiled expression; call ``.evaluate(info, fields)`` on it

    Raises:
        ParseError: If the expression is malformed
    """
    return parse_stages(expression, strict=strict)[2]


@lru_cache(maxsize=PARSE_CACHE_SIZE)
def parse_cached(expression: str, strict: bool = False) -> ScopeExpr:
    """Memoized parse(). Compiled expressions are immutable, so sharing is safe."""
    return parse(expression, strict=strict)
