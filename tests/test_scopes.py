"""Tests for the ScopeForge scope expression engine.

Tests cover:
- Tokenizer: Splitting expression strings
- Precedence: Infix to postfix ordering, lenient and strict
- Compiler: Postfix to node tree, arity errors
- Evaluation: Node semantics and algebraic properties
- Serialization: to_dict / node_from_dict / canonical text
"""

import logging
from concurrent.futures import ThreadPoolExecutor

import pytest

from scopeforge.scopes import (
    PRECEDENCE,
    Intersect,
    Literal,
    Negate,
    ParseError,
    Union,
    Wildcard,
    compile_postfix,
    node_from_dict,
    parse,
    parse_cached,
    parse_stages,
    scope_info_from_mapping,
    to_postfix,
    tokenize,
)


INFO = {
    "id": [],
    "name": ["public"],
    "email": ["private"],
    "ssn": ["private", "sensitive"],
}
FIELDS = ["id", "name", "email", "ssn"]


def select(expression: str, info=INFO, fields=FIELDS, strict: bool = False) -> list[str]:
    return parse(expression, strict=strict).evaluate(info, fields)


# =============================================================================
# Tokenizer Tests
# =============================================================================


class TestTokenizer:
    def test_splits_operators_and_parentheses(self):
        assert tokenize("public | (private & !sensitive)") == [
            "public", "|", "(", "private", "&", "!", "sensitive", ")",
        ]

    def test_no_whitespace_needed(self):
        assert tokenize("*&!x") == ["*", "&", "!", "x"]

    def test_literals_are_trimmed(self):
        assert tokenize("  read   |write  ") == ["read", "|", "write"]

    def test_inner_whitespace_stays_in_literal(self):
        assert tokenize("  a b  ") == ["a b"]

    def test_empty_input(self):
        assert tokenize("") == []
        assert tokenize("   ") == []

    def test_literal_content_not_validated(self):
        assert tokenize("user:read & *") == ["user:read", "&", "*"]


# =============================================================================
# Precedence Tests
# =============================================================================


class TestPrecedence:
    def test_precedence_table(self):
        assert PRECEDENCE["|"] < PRECEDENCE["&"] < PRECEDENCE["!"]

    def test_literals_pass_through(self):
        assert to_postfix(["a"]) == ["a"]

    def test_higher_precedence_popped_first(self):
        assert to_postfix(tokenize("a&b|c")) == ["a", "b", "&", "c", "|"]

    def test_equal_precedence_is_left_biased(self):
        assert to_postfix(tokenize("a|b|c")) == ["a", "b", "|", "c", "|"]

    def test_negation_binds_tightest(self):
        assert to_postfix(tokenize("!a&b")) == ["a", "!", "b", "&"]

    def test_grouping(self):
        assert to_postfix(tokenize("(a|b)&c")) == ["a", "b", "|", "c", "&"]

    def test_trailing_operators_appended_bottom_to_top(self):
        assert to_postfix(tokenize("a|b&c")) == ["a", "b", "c", "|", "&"]

    def test_strict_pops_trailing_operators_top_first(self):
        assert to_postfix(tokenize("a|b&c"), strict=True) == ["a", "b", "c", "&", "|"]

    def test_unmatched_open_paren(self):
        with pytest.raises(ParseError, match=r"Unmatched '\('"):
            to_postfix(tokenize("(a"))

    def test_unmatched_open_paren_below_operators(self):
        with pytest.raises(ParseError):
            to_postfix(tokenize("((a)|b"))

    def test_unmatched_close_paren_ignored(self):
        assert to_postfix(tokenize("a)")) == ["a"]
        assert to_postfix(tokenize("a&b)")) == ["a", "b", "&"]

    def test_unmatched_close_paren_logs_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="scopeforge.scopes.precedence"):
            to_postfix(tokenize("a)"))
        assert "unmatched ')'" in caplog.text

    def test_unmatched_close_paren_strict(self):
        with pytest.raises(ParseError, match=r"Unmatched '\)'"):
            to_postfix(tokenize("a)"), strict=True)


# =============================================================================
# Compiler Tests
# =============================================================================


class TestCompiler:
    def test_literal(self):
        assert compile_postfix(["public"]) == Literal("public")

    def test_wildcard(self):
        assert compile_postfix(["*"]) == Wildcard()

    def test_negate(self):
        assert compile_postfix(["a", "!"]) == Negate(Literal("a"))

    def test_binary_operands_in_source_order(self):
        assert compile_postfix(["a", "b", "|"]) == Union(Literal("a"), Literal("b"))
        assert compile_postfix(["a", "b", "&"]) == Intersect(Literal("a"), Literal("b"))

    @pytest.mark.parametrize("steps", [["|"], ["a", "&"], ["a", "|"]])
    def test_binary_needs_two_operands(self, steps):
        with pytest.raises(ParseError, match="requires two operands"):
            compile_postfix(steps)

    def test_negate_needs_an_operand(self):
        with pytest.raises(ParseError, match="requires an operand"):
            compile_postfix(["!"])

    def test_empty(self):
        with pytest.raises(ParseError, match="Empty"):
            compile_postfix([])

    def test_residue_returns_top(self):
        assert compile_postfix(["a", "b"]) == Literal("b")

    def test_residue_logs_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="scopeforge.scopes.compiler"):
            compile_postfix(["a", "b", "c"])
        assert "Discarding 2 unused operand(s)" in caplog.text

    def test_residue_strict(self):
        with pytest.raises(ParseError, match="Missing operator"):
            compile_postfix(["a", "b"], strict=True)


# =============================================================================
# Parse Tests
# =============================================================================


class TestParse:
    def test_union_keeps_source_order(self):
        assert parse("public|private") == Union(Literal("public"), Literal("private"))

    def test_mixed_precedence(self):
        assert parse("a&b|c") == Union(Intersect(Literal("a"), Literal("b")), Literal("c"))
        assert parse("a|!b") == Union(Literal("a"), Negate(Literal("b")))

    def test_trailing_operator_order_lenient(self):
        assert parse("a|b&c") == Intersect(
            Literal("a"), Union(Literal("b"), Literal("c"))
        )

    def test_trailing_operator_order_strict(self):
        assert parse("a|b&c", strict=True) == Union(
            Literal("a"), Intersect(Literal("b"), Literal("c"))
        )

    def test_trailing_negation_applies_last_in_lenient_mode(self):
        union = Union(Literal("a"), Literal("b"))
        assert parse("*&!(a|b)") == Negate(Intersect(Wildcard(), union))
        assert parse("*&!(a|b)", strict=True) == Intersect(Wildcard(), Negate(union))

    def test_nested_negation_needs_parentheses(self):
        assert parse("!(!a)") == Negate(Negate(Literal("a")))
        with pytest.raises(ParseError):
            parse("!!a")

    def test_adjacent_operands_lenient(self):
        assert parse("a (b)") == Literal("b")

    def test_adjacent_operands_strict(self):
        with pytest.raises(ParseError):
            parse("a (b)", strict=True)

    @pytest.mark.parametrize("expression", ["", "   ", "&", "a|", "!", "()", "(a", ")"])
    def test_malformed(self, expression):
        with pytest.raises(ParseError):
            parse(expression)

    def test_error_carries_expression(self):
        with pytest.raises(ParseError) as exc_info:
            parse("(public")
        assert exc_info.value.expression == "(public"
        assert "'(public'" in str(exc_info.value)

    def test_stages(self):
        tokens, postfix, compiled = parse_stages("a|b&c", strict=True)
        assert tokens == ["a", "|", "b", "&", "c"]
        assert postfix == ["a", "b", "c", "&", "|"]
        assert compiled == parse("a|b&c", strict=True)

    @pytest.mark.parametrize("expression", ["(a", "a&", "a)"])
    def test_stages_error_carries_expression(self, expression):
        with pytest.raises(ParseError) as exc_info:
            parse_stages(expression, strict=True)
        assert exc_info.value.expression == expression
        assert f"in scope expression {expression!r}" in str(exc_info.value)

    def test_parse_error_is_value_error(self):
        with pytest.raises(ValueError):
            parse("&")

    def test_unmatched_close_is_not_an_error(self):
        assert parse("a)") == parse("a")
        assert select("public)") == select("public")

    def test_tree_depth_follows_nesting(self):
        assert parse("a").depth() == 1
        assert parse("!(a|b)").depth() == 3
        assert parse("((a&b)|c)&d").depth() == 4

    def test_scopes_referenced(self):
        assert parse("*&!(a|b)").scopes() == {"a", "b"}
        assert parse("*").scopes() == set()

    def test_parse_cached_shares_result(self):
        assert parse_cached("cached|expr") is parse_cached("cached|expr")


# =============================================================================
# Evaluation Tests
# =============================================================================


class TestEvaluate:
    def test_wildcard_is_identity(self):
        assert select("*") == ["id", "name", "email", "ssn"]

    def test_literal(self):
        assert select("public") == ["name"]

    def test_negate(self):
        assert select("!private") == ["id", "name"]

    def test_intersect(self):
        assert select("private&sensitive") == ["ssn"]

    def test_union(self):
        assert select("public|private") == ["name", "email", "ssn"]

    def test_wildcard_minus_scope(self):
        assert select("*&!sensitive") == ["id", "name", "email"]

    def test_union_order_follows_operands(self):
        assert select("private|public") == ["email", "ssn", "name"]

    def test_union_deduplicates(self):
        assert select("private|sensitive") == ["email", "ssn"]

    def test_unknown_scope_selects_nothing(self):
        assert select("missing") == []
        assert select("!missing") == FIELDS

    def test_fields_missing_from_info_have_no_scopes(self):
        assert select("public", info={}, fields=["ghost"]) == []
        assert select("!public", info={}, fields=["ghost"]) == ["ghost"]

    def test_negate_complements_against_full_input(self):
        expr = Intersect(Literal("private"), Negate(Literal("sensitive")))
        assert expr.evaluate(INFO, FIELDS) == ["email"]

    def test_reusable_across_inputs(self):
        compiled = parse("public|internal")
        assert compiled.evaluate(INFO, FIELDS) == ["name"]
        assert compiled.evaluate({"createdAt": ["internal"]}, ["createdAt"]) == ["createdAt"]

    def test_does_not_mutate_inputs(self):
        fields = list(FIELDS)
        info = {k: list(v) for k, v in INFO.items()}
        select("*&!(public|sensitive)", info=info, fields=fields)
        assert fields == FIELDS
        assert info == INFO

    def test_concurrent_evaluation(self):
        compiled = parse("public|(private&!sensitive)")
        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(pool.map(lambda _: compiled.evaluate(INFO, FIELDS), range(32)))
        assert all(r == ["name", "email"] for r in results)


class TestAlgebraicProperties:
    @pytest.mark.parametrize(
        "expression",
        ["public", "private&sensitive", "public|private", "*", "!private", "(public|sensitive)"],
    )
    def test_complement_law(self, expression):
        selected = set(select(expression))
        rejected = set(select(f"!({expression})"))
        assert selected | rejected == set(FIELDS)
        assert selected & rejected == set()

    @pytest.mark.parametrize(
        "expression",
        ["(public|sensitive)&!private", "public|private&!sensitive", "!public&!sensitive"],
    )
    def test_complement_law_strict(self, expression):
        selected = set(select(expression, strict=True))
        rejected = set(select(f"!({expression})", strict=True))
        assert selected | rejected == set(FIELDS)
        assert selected & rejected == set()

    @pytest.mark.parametrize("operator", ["&", "|"])
    def test_commutativity(self, operator):
        info = {"f1": ["a"], "f2": ["b"], "f3": ["a", "b"], "f4": ["c"], "f5": []}
        fields = list(info)
        left = select(f"a{operator}b", info=info, fields=fields)
        right = select(f"b{operator}a", info=info, fields=fields)
        assert set(left) == set(right)

    def test_grouping_changes_meaning(self):
        info = {"x": ["a"], "y": ["b", "c"], "z": ["c"]}
        fields = list(info)
        grouped = select("(a|b)&c", info=info, fields=fields)
        assert grouped == ["y"]
        assert select("a|b&c", info=info, fields=fields, strict=True) == ["x", "y"]
        assert select("a|b&c", info=info, fields=fields) != grouped

    @pytest.mark.parametrize(
        "expression", ["*", "!public", "public|private", "!(private&sensitive)", "*&!sensitive"]
    )
    def test_never_reintroduces_fields(self, expression):
        narrowed = ["name", "ssn"]
        assert set(select(expression, fields=narrowed)) <= set(narrowed)

    def test_narrowed_negation(self):
        assert select("!public", fields=["name", "ssn"]) == ["ssn"]


# =============================================================================
# Node / Serialization Tests
# =============================================================================


class TestNodes:
    def test_structural_equality(self):
        assert Wildcard() == Wildcard()
        assert Union(Literal("a"), Literal("b")) != Intersect(Literal("a"), Literal("b"))
        assert len({parse("a|b"), parse("a|b")}) == 1

    def test_nodes_are_immutable(self):
        node = Literal("a")
        with pytest.raises(AttributeError):
            node.scope = "b"

    def test_to_dict(self):
        assert parse("*&!(a|b)", strict=True).to_dict() == {
            "type": "intersect",
            "left": {"type": "wildcard"},
            "right": {
                "type": "negate",
                "operand": {
                    "type": "union",
                    "left": {"type": "literal", "scope": "a"},
                    "right": {"type": "literal", "scope": "b"},
                },
            },
        }

    def test_from_dict_rebuilds_tree(self):
        tree = parse("public|(private&!sensitive)")
        assert node_from_dict(tree.to_dict()) == tree

    @pytest.mark.parametrize(
        "data",
        [
            {"type": "xor"},
            {},
            {"type": "literal"},
            {"type": "negate"},
            {"type": "union", "left": {"type": "wildcard"}},
        ],
    )
    def test_from_dict_rejects_bad_input(self, data):
        with pytest.raises(ValueError):
            node_from_dict(data)

    def test_canonical_text(self):
        assert str(parse("public|private&!sensitive", strict=True)) == (
            "(public | (private & !sensitive))"
        )
        assert str(parse("!(!a)")) == "!(!a)"

    @pytest.mark.parametrize(
        "expression",
        ["*", "a", "!a", "!(!a)", "a&b|c", "(a|b)&!c", "*&!(a|b)", "!(a&b)|c&d"],
    )
    def test_canonical_text_reparses(self, expression):
        tree = parse(expression, strict=True)
        assert parse(str(tree), strict=True) == tree
        assert parse(str(tree)) == tree

    def test_scope_info_from_mapping(self):
        assert scope_info_from_mapping({"a": None, "b": ("x", "y")}) == {
            "a": [],
            "b": ["x", "y"],
        }
