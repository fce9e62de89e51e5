"""Scope expression engine for ScopeForge.

This module provides:
- tokenize: Splits expression strings into tokens
- to_postfix: Resolves operator precedence (infix -> postfix)
- compile_postfix / parse: Build an immutable ScopeExpr tree
- ScopeExpr nodes: Evaluate against a scope info mapping and field list
"""

from scopeforge.scopes.compiler import compile_postfix, parse, parse_cached, parse_stages
from scopeforge.scopes.errors import ParseError
from scopeforge.scopes.nodes import (
    BinaryScopeExpr,
    Intersect,
    Literal,
    Negate,
    ScopeExpr,
    ScopeInfo,
    Union,
    Wildcard,
    node_from_dict,
    scope_info_from_mapping,
)
from scopeforge.scopes.precedence import PRECEDENCE, to_postfix
from scopeforge.scopes.tokenizer import WILDCARD, tokenize

__all__ = [
    # Compiler
    "compile_postfix",
    "parse",
    "parse_cached",
    "parse_stages",
    "ParseError",
    # Nodes
    "BinaryScopeExpr",
    "Intersect",
    "Literal",
    "Negate",
    "ScopeExpr",
    "ScopeInfo",
    "Union",
    "Wildcard",
    "node_from_dict",
    "scope_info_from_mapping",
    # Precedence
    "PRECEDENCE",
    "to_postfix",
    # Tokenizer
    "WILDCARD",
    "tokenize",
]
