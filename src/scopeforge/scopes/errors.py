"""Errors raised while parsing scope expressions."""


class ParseError(ValueError):
    """A scope expression could not be compiled.

    Attributes:
        expression: The source expression, when known
    """

    def __init__(self, message: str, expression: str | None = None):
        self.expression = expression
        if expression is not None:
            message = f"{message} in scope expression {expression!r}"
        super().__init__(message)
