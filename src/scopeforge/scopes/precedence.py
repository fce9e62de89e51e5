"""Infix to postfix conversion for scope expressions.

Two-stack shunting-yard with fixed precedences (lowest to highest):
1. | (union)
2. & (intersection)
3. ! (negation)

Lenient mode reproduces the historical behaviour exactly: an unmatched
closing parenthesis is ignored, and operators still on the stack at the end
are appended in bottom-to-top order. Strict mode rejects the former and
pops the latter top-first.
"""

import logging

from scopeforge.scopes.errors import ParseError
from scopeforge.scopes.tokenizer import LPAREN, RPAREN, is_operator

logger = logging.getLogger(__name__)

PRECEDENCE: dict[str, int] = {
    "|": 1,
    "&": 2,
    "!": 3,
}


def to_postfix(tokens: list[str], strict: bool = False) -> list[str]:
    """Reorder infix tokens into postfix (Reverse-Polish) order.

    Args:
        tokens: Tokens as produced by tokenize()
        strict: Reject unmatched ')' and pop trailing operators top-first

    Returns:
        The postfix token sequence

    Raises:
        ParseError: If an opening parenthesis is never closed, or (strict)
            a closing parenthesis has no opening match
    """
    op_stack: list[str] = []
    output: list[str] = []

    for token in tokens:
        if is_operator(token):
            precedence = PRECEDENCE[token]
            while op_stack:
                top = op_stack[-1]
                if top == LPAREN or PRECEDENCE[top] < precedence:
                    break
                output.append(op_stack.pop())
            op_stack.append(token)

        elif token == LPAREN:
            op_stack.append(token)

        elif token == RPAREN:
            while op_stack and op_stack[-1] != LPAREN:
                output.append(op_stack.pop())
            if op_stack:
                op_stack.pop()
            elif strict:
                raise ParseError("Unmatched ')'")
            else:
                logger.warning("Ignoring unmatched ')' in scope expression")

        else:
            output.append(token)

    if LPAREN in op_stack:
        raise ParseError("Unmatched '('")

    if strict:
        output.extend(reversed(op_stack))
    else:
        output.extend(op_stack)

    return output
