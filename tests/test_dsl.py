import pytest  # type: ignore

import re

from typing import Any

from sprig.errors import (
    ArityError,
    MissingPrecedenceError,
    InvalidRuleError,
    UndefinedSymbolError,
    InvalidAliasTargetError,
)

from sprig.rules import (
    Rule,
    StringRule,
    PatternRule,
    BlankRule,
    SymbolRule,
    SeqRule,
    ChoiceRule,
    RepeatRule,
    Repeat1Rule,
    PrecRule,
    Precedence,
    FieldRule,
    AliasRule,
    TokenRule,
    ImmediateTokenRule,
    Grammar,
)

from sprig.dsl import (
    is_valid_name,
    is_rule,
    normalize,
    string,
    pattern,
    blank,
    sym,
    seq,
    choice,
    optional,
    repeat,
    repeat1,
    field,
    alias,
    prec,
    prec_left,
    prec_right,
    prec_dynamic,
    token,
    immediate_token,
    RuleBuilder,
    named_function,
    external,
    from_grammar,
)


def expression() -> None:
    pass


@pytest.mark.parametrize(
    "name, exp",
    [
        ("a", True),
        ("_", True),
        ("foo_bar", True),
        ("Foo123", True),
        ("_0", True),
        # Invalid
        ("", False),
        ("0a", False),
        ("foo-bar", False),
        ("foo bar", False),
        ("a.b", False),
        ("<lambda>", False),
        ("café", False),
        ("foo\n", False),
        (None, False),
        (123, False),
    ],
)
def test_is_valid_name(name: Any, exp: bool) -> None:
    assert is_valid_name(name) is exp


def test_is_rule() -> None:
    assert is_rule(BlankRule())
    assert not is_rule("foo")
    assert not is_rule(expression)


class TestNormalize:
    @pytest.mark.parametrize(
        "value, exp",
        [
            ("foo", StringRule("foo")),
            ("", StringRule("")),
            (re.compile(r"[a-z]+"), PatternRule("[a-z]+")),
            # Flags are discarded
            (re.compile(r"abc", re.IGNORECASE), PatternRule("abc")),
            (expression, SymbolRule("expression")),
            (named_function("foo"), SymbolRule("foo")),
            (BlankRule(), BlankRule()),
            (SeqRule((StringRule("a"),)), SeqRule((StringRule("a"),))),
        ],
    )
    def test_valid(self, value: Any, exp: Rule) -> None:
        assert normalize(value) == exp

    @pytest.mark.parametrize(
        "value",
        ["foo", re.compile("x"), expression, BlankRule(), seq("a", expression)],
    )
    def test_idempotent(self, value: Any) -> None:
        once = normalize(value)
        assert normalize(once) == once
        assert normalize(once) is once

    def test_none(self) -> None:
        with pytest.raises(UndefinedSymbolError, match="Undefined symbol"):
            normalize(None)

    @pytest.mark.parametrize("value", [123, 1.5, True, ["a"], {"a": "b"}, object()])
    def test_invalid(self, value: Any) -> None:
        with pytest.raises(InvalidRuleError, match="invalid rule"):
            normalize(value)

    def test_lambda(self) -> None:
        with pytest.raises(InvalidRuleError, match="function-rule"):
            normalize(lambda: None)


class TestLeaves:
    def test_string(self) -> None:
        assert string("a") == StringRule("a")

    def test_pattern(self) -> None:
        assert pattern("a+") == PatternRule("a+")
        assert pattern(re.compile("a+")) == PatternRule("a+")

    def test_blank(self) -> None:
        assert blank() == BlankRule()

    def test_sym(self) -> None:
        assert sym("foo") == SymbolRule("foo")


class TestSeqAndChoice:
    @pytest.mark.parametrize("combinator, cls", [(seq, SeqRule), (choice, ChoiceRule)])
    def test_empty(self, combinator: Any, cls: Any) -> None:
        assert combinator() == cls(())

    @pytest.mark.parametrize("combinator, cls", [(seq, SeqRule), (choice, ChoiceRule)])
    def test_members_normalized_in_order(self, combinator: Any, cls: Any) -> None:
        assert combinator("a", expression, re.compile("b")) == cls(
            (StringRule("a"), SymbolRule("expression"), PatternRule("b"))
        )

    def test_invalid_member(self) -> None:
        with pytest.raises(UndefinedSymbolError):
            seq("a", None)


class TestSingleRuleCombinators:
    def test_optional(self) -> None:
        assert optional("a") == ChoiceRule((StringRule("a"), BlankRule()))
        assert optional(expression) == choice(expression, blank())

    def test_repeat(self) -> None:
        assert repeat("a") == RepeatRule(StringRule("a"))

    def test_repeat1(self) -> None:
        assert repeat1(expression) == Repeat1Rule(SymbolRule("expression"))

    def test_token(self) -> None:
        assert token(seq("a", "b")) == TokenRule(
            SeqRule((StringRule("a"), StringRule("b")))
        )

    def test_immediate_token(self) -> None:
        assert immediate_token("a") == ImmediateTokenRule(StringRule("a"))

    @pytest.mark.parametrize("combinator", [optional, repeat, repeat1])
    def test_too_many_rules(self, combinator: Any) -> None:
        with pytest.raises(ArityError, match="Did you mean to call `seq`"):
            combinator("a", "b")

    @pytest.mark.parametrize("combinator", [optional, repeat, repeat1])
    def test_too_few_rules(self, combinator: Any) -> None:
        with pytest.raises(ArityError, match="requires a rule argument"):
            combinator()

    def test_arity_message_names_caller(self) -> None:
        with pytest.raises(ArityError) as exc_info:
            repeat1("a", "b")
        assert str(exc_info.value) == (
            "The `repeat1` function only takes one rule argument.\n"
            "You passed multiple rules. Did you mean to call `seq`?"
        )


class TestField:
    def test_field(self) -> None:
        assert field("lhs", expression) == FieldRule("lhs", SymbolRule("expression"))

    def test_field_name_unchecked(self) -> None:
        # Field names are not declarations so aren't validated
        assert field("not a name", "a") == FieldRule("not a name", StringRule("a"))


class TestAlias:
    def test_string_target(self) -> None:
        assert alias(sym("foo"), "bar") == AliasRule(SymbolRule("foo"), False, "bar")

    def test_symbol_target(self) -> None:
        assert alias(sym("foo"), sym("baz")) == AliasRule(
            SymbolRule("foo"), True, "baz"
        )

    def test_function_target(self) -> None:
        assert alias("foo", expression) == AliasRule(
            StringRule("foo"), True, "expression"
        )

    @pytest.mark.parametrize(
        "target", [None, 123, blank(), seq("a"), lambda: None, ["a"]]
    )
    def test_invalid_target(self, target: Any) -> None:
        with pytest.raises(InvalidAliasTargetError):
            alias("foo", target)


class TestPrecedence:
    def test_prec(self) -> None:
        assert prec(2, "a") == PrecRule(2, StringRule("a"), Precedence.default)

    def test_prec_float(self) -> None:
        assert prec(-1.5, "a") == PrecRule(-1.5, StringRule("a"))

    @pytest.mark.parametrize(
        "combinator, variant",
        [(prec_left, Precedence.left), (prec_right, Precedence.right)],
    )
    def test_associative_default_value(self, combinator: Any, variant: Any) -> None:
        assert combinator("a") == PrecRule(0, StringRule("a"), variant)

    @pytest.mark.parametrize(
        "combinator, variant",
        [(prec_left, Precedence.left), (prec_right, Precedence.right)],
    )
    def test_associative_explicit_value(self, combinator: Any, variant: Any) -> None:
        assert combinator(3, expression) == PrecRule(
            3, SymbolRule("expression"), variant
        )

    def test_prec_dynamic(self) -> None:
        assert prec_dynamic(1, "a") == PrecRule(1, StringRule("a"), Precedence.dynamic)

    @pytest.mark.parametrize("combinator", [prec, prec_dynamic])
    def test_missing_precedence(self, combinator: Any) -> None:
        with pytest.raises(MissingPrecedenceError):
            combinator(None, "a")

    @pytest.mark.parametrize("combinator", [prec_left, prec_right])
    def test_missing_precedence_associative(self, combinator: Any) -> None:
        with pytest.raises(MissingPrecedenceError):
            combinator(None, "a")

    @pytest.mark.parametrize(
        "combinator", [prec, prec_left, prec_right, prec_dynamic]
    )
    @pytest.mark.parametrize("value", ["1", True, [1]])
    def test_non_numeric_precedence(self, combinator: Any, value: Any) -> None:
        with pytest.raises(InvalidRuleError):
            combinator(value, "a")

    @pytest.mark.parametrize("combinator", [prec, prec_dynamic])
    def test_too_many_rules(self, combinator: Any) -> None:
        with pytest.raises(ArityError, match="and a precedence argument"):
            combinator(1, "a", "b")

    @pytest.mark.parametrize("combinator", [prec_left, prec_right])
    def test_too_many_rules_associative(self, combinator: Any) -> None:
        with pytest.raises(ArityError, match="optional precedence argument"):
            combinator(1, "a", "b")

    @pytest.mark.parametrize("combinator", [prec_left, prec_right])
    def test_no_arguments(self, combinator: Any) -> None:
        with pytest.raises(ArityError):
            combinator()


class TestRuleBuilder:
    def test_attributes_are_symbols(self) -> None:
        r = RuleBuilder()
        assert r.foo == SymbolRule("foo")
        assert r.anything_at_all == SymbolRule("anything_at_all")

    def test_items_are_symbols(self) -> None:
        r = RuleBuilder()
        assert r["foo"] == SymbolRule("foo")

    def test_dunder_attributes_not_symbols(self) -> None:
        r = RuleBuilder()
        with pytest.raises(AttributeError):
            r.__wrapped__

    def test_usable_in_combinators(self) -> None:
        r = RuleBuilder()
        assert seq(r.a, ",", r.b) == SeqRule(
            (SymbolRule("a"), StringRule(","), SymbolRule("b"))
        )


class TestNamedFunctions:
    def test_named_function(self) -> None:
        f = named_function("foo")
        assert f.__name__ == "foo"
        assert f() is None
        assert normalize(f) == SymbolRule("foo")

    def test_external(self) -> None:
        assert normalize(external("indent")) == SymbolRule("indent")


class TestFromGrammar:
    @pytest.fixture
    def grammar(self) -> Grammar:
        return Grammar(
            "foo",
            {
                "a": SeqRule((SymbolRule("b"), SymbolRule("indent"))),
                "b": StringRule("b"),
            },
            externals=[SymbolRule("indent"), StringRule("literal")],
        )

    def test_references(self, grammar: Grammar) -> None:
        refs = from_grammar(grammar)
        assert normalize(refs.a) == SymbolRule("a")
        assert normalize(refs["b"]) == SymbolRule("b")
        assert normalize(refs.indent) == SymbolRule("indent")
        assert "a" in refs
        assert "literal" not in refs
        assert list(refs) == ["a", "b", "indent"]

    def test_unknown_reference(self, grammar: Grammar) -> None:
        refs = from_grammar(grammar)
        with pytest.raises(AttributeError):
            refs.nope
        with pytest.raises(KeyError):
            refs["nope"]

    def test_rules(self, grammar: Grammar) -> None:
        refs = from_grammar(grammar)
        assert list(refs.rules) == ["a", "b"]
        assert refs.rules["a"].__name__ == "a"
        assert refs.rules["a"]() == grammar.rules["a"]

    def test_externals(self, grammar: Grammar) -> None:
        refs = from_grammar(grammar)
        assert refs.externals == {"indent": SymbolRule("indent")}
