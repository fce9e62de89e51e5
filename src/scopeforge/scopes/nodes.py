"""Compiled scope expression nodes.

A compiled expression is an immutable tree of five node types. Every node
evaluates as a pure function of ``(scope_info, fields)`` and returns the
selected subset of ``fields``, preserving input order.
"""

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from scopeforge.scopes.tokenizer import WILDCARD

# Field name -> scope tags declared on that field
ScopeInfo = Mapping[str, Sequence[str]]


def scope_info_from_mapping(mapping: Mapping[str, Iterable[str] | None]) -> dict[str, list[str]]:
    """Normalize a field -> scopes mapping (None becomes no scopes)."""
    return {name: list(scopes or []) for name, scopes in mapping.items()}


# -----------------------------------------------------------------------------
# Node Types
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class ScopeExpr:
    """Base class for compiled scope expression nodes."""

    def evaluate(self, info: ScopeInfo, fields: Sequence[str]) -> list[str]:
        raise NotImplementedError

    def to_dict(self) -> dict[str, Any]:
        raise NotImplementedError

    def scopes(self) -> set[str]:
        """Scope tags referenced anywhere in this expression."""
        return set()

    def depth(self) -> int:
        return 1


@dataclass(frozen=True)
class Wildcard(ScopeExpr):
    """``*`` — selects every field."""

    def evaluate(self, info: ScopeInfo, fields: Sequence[str]) -> list[str]:
        return list(fields)

    def to_dict(self) -> dict[str, Any]:
        return {"type": "wildcard"}

    def __str__(self) -> str:
        return WILDCARD


@dataclass(frozen=True)
class Literal(ScopeExpr):
    """Fields declaring ``scope``. Fields missing from the info have no scopes."""

    scope: str

    def evaluate(self, info: ScopeInfo, fields: Sequence[str]) -> list[str]:
        return [f for f in fields if self.scope in info.get(f, ())]

    def to_dict(self) -> dict[str, Any]:
        return {"type": "literal", "scope": self.scope}

    def scopes(self) -> set[str]:
        return {self.scope}

    def __str__(self) -> str:
        return self.scope


@dataclass(frozen=True)
class Negate(ScopeExpr):
    """Complement of ``operand`` relative to the fields passed to this call."""

    operand: ScopeExpr

    def evaluate(self, info: ScopeInfo, fields: Sequence[str]) -> list[str]:
        excluded = set(self.operand.evaluate(info, fields))
        return [f for f in fields if f not in excluded]

    def to_dict(self) -> dict[str, Any]:
        return {"type": "negate", "operand": self.operand.to_dict()}

    def scopes(self) -> set[str]:
        return self.operand.scopes()

    def depth(self) -> int:
        return 1 + self.operand.depth()

    def __str__(self) -> str:
        # "!!a" does not parse, so nested negations keep their parentheses
        if isinstance(self.operand, Negate):
            return f"!({self.operand})"
        return f"!{self.operand}"


@dataclass(frozen=True)
class BinaryScopeExpr(ScopeExpr):
    """Shared shape of the two binary operators."""

    left: ScopeExpr
    right: ScopeExpr

    operator = ""
    type_name = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type_name,
            "left": self.left.to_dict(),
            "right": self.right.to_dict(),
        }

    def scopes(self) -> set[str]:
        return self.left.scopes() | self.right.scopes()

    def depth(self) -> int:
        return 1 + max(self.left.depth(), self.right.depth())

    def __str__(self) -> str:
        return f"({self.left} {self.operator} {self.right})"


@dataclass(frozen=True)
class Union(BinaryScopeExpr):
    """``left | right`` — left's fields, then right's fields not yet selected."""

    operator = "|"
    type_name = "union"

    def evaluate(self, info: ScopeInfo, fields: Sequence[str]) -> list[str]:
        combined = self.left.evaluate(info, fields) + self.right.evaluate(info, fields)
        return list(dict.fromkeys(combined))


@dataclass(frozen=True)
class Intersect(BinaryScopeExpr):
    """``left & right`` — left's fields that right also selects."""

    operator = "&"
    type_name = "intersect"

    def evaluate(self, info: ScopeInfo, fields: Sequence[str]) -> list[str]:
        included = set(self.right.evaluate(info, fields))
        return [f for f in self.left.evaluate(info, fields) if f in included]


# -----------------------------------------------------------------------------
# Serialization
# -----------------------------------------------------------------------------


def node_from_dict(data: Mapping[str, Any]) -> ScopeExpr:
    """Rebuild a node tree from the output of ``ScopeExpr.to_dict()``.

    Raises:
        ValueError: If a node type is unknown or a required key is missing
    """
    node_type = data.get("type")

    if node_type == "wildcard":
        return Wildcard()

    if node_type == "literal":
        scope = data.get("scope")
        if not isinstance(scope, str) or not scope:
            raise ValueError("Literal node requires a non-empty 'scope'")
        return Literal(scope)

    if node_type == "negate":
        if "operand" not in data:
            raise ValueError("Negate node requires an 'operand'")
        return Negate(node_from_dict(data["operand"]))

    if node_type in ("union", "intersect"):
        if "left" not in data or "right" not in data:
            raise ValueError(f"{node_type.title()} node requires 'left' and 'right'")
        node_class = Union if node_type == "union" else Intersect
        return node_class(node_from_dict(data["left"]), node_from_dict(data["right"]))

    raise ValueError(f"Unknown scope expression node type: {node_type!r}")
