"""
The rule-building DSL: a normalizer which coerces raw values into
:py:class:`.Rule` trees and one combinator per rule kind.

All functions here are pure; none keep any state between calls.
"""

import re

from typing import (
    Any,
    Callable,
    Dict,
    Iterator,
    Pattern,
    Tuple,
    Union,
)

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


__all__ = [
    "RawRule",
    "is_valid_name",
    "is_rule",
    "normalize",
    "string",
    "pattern",
    "blank",
    "sym",
    "seq",
    "choice",
    "optional",
    "repeat",
    "repeat1",
    "field",
    "alias",
    "prec",
    "prec_left",
    "prec_right",
    "prec_dynamic",
    "token",
    "immediate_token",
    "RuleBuilder",
    "named_function",
    "external",
    "GrammarReferences",
    "from_grammar",
]


RawRule = Union[str, Pattern[str], Rule, Callable[[], Any]]
"""
Anything which :py:func:`normalize` can turn into a rule: a literal string, a
compiled regular expression, a rule or a named function (referring to the rule
of the same name).
"""

NAME_PATTERN = re.compile(r"[A-Za-z_]\w*", re.ASCII)
"""The form every rule, external and grammar name must take."""


def is_valid_name(name: Any) -> bool:
    """Test whether ``name`` is a string of the form ``[A-Za-z_]\\w*``."""
    return isinstance(name, str) and NAME_PATTERN.fullmatch(name) is not None


def is_rule(value: Any) -> bool:
    """Test whether a value is already a normalized :py:class:`.Rule`."""
    return isinstance(value, Rule)


def normalize(value: Any) -> Rule:
    """
    Convert a raw value into a :py:class:`.Rule`.

    * Strings become :py:class:`.StringRule`\\ s.
    * Compiled regular expressions become :py:class:`.PatternRule`\\ s (any
      flags are discarded).
    * Rules are returned unchanged.
    * Functions become a :py:class:`.SymbolRule` naming the function. This
      allows rules to refer to each other (or themselves) before they're
      defined.

    Raises :py:exc:`.UndefinedSymbolError` for None and
    :py:exc:`.InvalidRuleError` for anything else.
    """
    if isinstance(value, Rule):
        return value
    elif isinstance(value, str):
        return StringRule(value)
    elif isinstance(value, re.Pattern):
        return PatternRule(value.pattern)
    elif value is None:
        raise UndefinedSymbolError("Undefined symbol")
    elif callable(value):
        name = getattr(value, "__name__", None)
        if is_valid_name(name):
            return SymbolRule(name)
        raise InvalidRuleError(
            f"invalid name for a function-rule: '{name}' for {value!r}", value=value
        )
    else:
        raise InvalidRuleError(f"invalid rule: {value!r}", value=value)


def _check_one_rule(rules: Tuple[Any, ...], caller: str, suffix: str = "") -> Any:
    if len(rules) == 1:
        return rules[0]
    elif not rules:
        raise ArityError(f"The `{caller}` function requires a rule argument{suffix}.")
    else:
        raise ArityError(
            f"The `{caller}` function only takes one rule argument{suffix}.\n"
            "You passed multiple rules. Did you mean to call `seq`?"
        )


def _check_precedence(value: Any, caller: str) -> Union[int, float]:
    if value is None:
        raise MissingPrecedenceError(f"Missing precedence value in `{caller}`")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidRuleError(
            f"invalid precedence value in `{caller}`: {value!r}", value=value
        )
    return value


def string(value: str) -> StringRule:
    """A rule matching a literal string."""
    return StringRule(value)


def pattern(regex: Union[str, Pattern[str]]) -> PatternRule:
    """A rule matching a regular expression (given as source or compiled)."""
    if isinstance(regex, re.Pattern):
        return PatternRule(regex.pattern)
    return PatternRule(regex)


def blank() -> BlankRule:
    """A rule matching nothing."""
    return BlankRule()


def sym(name: str) -> SymbolRule:
    """A reference to the rule or external called ``name``."""
    return SymbolRule(name)


def seq(*rules: RawRule) -> SeqRule:
    """Match each of the provided rules, one after another."""
    return SeqRule(tuple(map(normalize, rules)))


def choice(*rules: RawRule) -> ChoiceRule:
    """Match any one of the provided rules."""
    return ChoiceRule(tuple(map(normalize, rules)))


def optional(*rules: RawRule) -> ChoiceRule:
    """Match a rule, or nothing. Equivalent to ``choice(rule, blank())``."""
    rule = _check_one_rule(rules, "optional")
    return choice(normalize(rule), blank())


def repeat(*rules: RawRule) -> RepeatRule:
    """Match zero-or-more repetitions of a rule."""
    return RepeatRule(normalize(_check_one_rule(rules, "repeat")))


def repeat1(*rules: RawRule) -> Repeat1Rule:
    """Match one-or-more repetitions of a rule."""
    return Repeat1Rule(normalize(_check_one_rule(rules, "repeat1")))


def field(name: str, rule: RawRule) -> FieldRule:
    """
    Give the node(s) matched by ``rule`` the field name ``name`` in the
    syntax tree. Field names are not declarations and so are not checked
    against the grammar's rules.
    """
    return FieldRule(name, normalize(rule))


def alias(rule: RawRule, target: Any) -> AliasRule:
    """
    Make the nodes matched by ``rule`` appear under another name.

    When ``target`` is a string, the rule appears as an anonymous node (as if
    it were that literal string). When ``target`` is a symbol (or a named
    function), the rule appears as a named node with the symbol's name.
    """
    content = normalize(rule)
    if isinstance(target, str):
        return AliasRule(content, False, target)
    elif isinstance(target, SymbolRule):
        return AliasRule(content, True, target.name)
    elif callable(target) and is_valid_name(getattr(target, "__name__", None)):
        return AliasRule(content, True, target.__name__)
    else:
        raise InvalidAliasTargetError(
            f"Invalid alias target {target!r}", value=target
        )


def prec(value: Union[int, float], *rules: RawRule) -> PrecRule:
    """Give a rule a numerical precedence."""
    value = _check_precedence(value, "prec")
    rule = _check_one_rule(rules, "prec", " and a precedence argument")
    return PrecRule(value, normalize(rule))


def _associative(
    args: Tuple[Any, ...], caller: str, variant: Precedence
) -> PrecRule:
    # The precedence value is optional and comes first when given
    if len(args) <= 1:
        value, rules = 0, args
    else:
        value, rules = args[0], args[1:]
    value = _check_precedence(value, caller)
    rule = _check_one_rule(rules, caller, " and an optional precedence argument")
    return PrecRule(value, normalize(rule), variant)


def prec_left(*args: Any) -> PrecRule:
    """
    Mark a rule as left-associative: ``prec_left(rule)`` or
    ``prec_left(value, rule)``. The precedence defaults to 0.
    """
    return _associative(args, "prec_left", Precedence.left)


def prec_right(*args: Any) -> PrecRule:
    """
    Mark a rule as right-associative: ``prec_right(rule)`` or
    ``prec_right(value, rule)``. The precedence defaults to 0.
    """
    return _associative(args, "prec_right", Precedence.right)


def prec_dynamic(value: Union[int, float], *rules: RawRule) -> PrecRule:
    """Give a rule a precedence which is applied at parse time."""
    value = _check_precedence(value, "prec_dynamic")
    rule = _check_one_rule(rules, "prec_dynamic", " and a precedence argument")
    return PrecRule(value, normalize(rule), Precedence.dynamic)


def token(rule: RawRule) -> TokenRule:
    """Treat everything matched by a rule as a single token."""
    return TokenRule(normalize(rule))


def immediate_token(rule: RawRule) -> ImmediateTokenRule:
    """Like :py:func:`token`, but no extras may appear before the token."""
    return ImmediateTokenRule(normalize(rule))


class RuleBuilder:
    """
    Passed to grammar section functions written in the builder style, e.g.::

        "rules": {"pair": lambda r: seq(r.key, ":", r.value)}

    Any attribute (or item) looked up produces a :py:class:`.SymbolRule` of
    that name. Whether the name actually exists is checked once the whole
    grammar has been declared.
    """

    def __getattr__(self, name: str) -> SymbolRule:
        if name.startswith("__"):
            raise AttributeError(name)
        return SymbolRule(name)

    def __getitem__(self, name: str) -> SymbolRule:
        return SymbolRule(name)


def named_function(name: str) -> Callable[[], None]:
    """
    Return a do-nothing, zero-argument function called ``name``. Normalizes
    to ``sym(name)``.
    """

    def function() -> None:
        pass

    function.__name__ = function.__qualname__ = name
    return function


external = named_function
"""
Name a token produced by an external scanner, e.g. for use in the
``externals`` mapping or to refer to it from rules.
"""


class GrammarReferences:
    """
    Named functions for each rule and named external of an existing grammar,
    as produced by :py:func:`from_grammar`.

    Every rule and external is available as an attribute (and by item). The
    :py:attr:`rules` and :py:attr:`externals` mappings may be passed directly
    as the corresponding options of :py:func:`.grammar`.
    """

    rules: Dict[str, Callable[[], Rule]]
    """A rule-producing function for every rule of the grammar."""

    externals: Dict[str, Rule]
    """The grammar's named externals."""

    def __init__(self, grammar: Grammar) -> None:
        self.rules = {
            name: _constant_rule(name, rule) for name, rule in grammar.rules.items()
        }
        self.externals = {
            rule.name: rule
            for rule in grammar.externals
            if isinstance(rule, SymbolRule)
        }
        self._references = {
            name: named_function(name) for name in {**self.rules, **self.externals}
        }

    def __getattr__(self, name: str) -> Callable[[], Any]:
        references = self.__dict__.get("_references", {})
        if name in references:
            return references[name]
        raise AttributeError(name)

    def __getitem__(self, name: str) -> Callable[[], Any]:
        return self._references[name]

    def __contains__(self, name: object) -> bool:
        return name in self._references

    def __iter__(self) -> Iterator[str]:
        return iter(self._references)


def _constant_rule(name: str, rule: Rule) -> Callable[[], Rule]:
    def function() -> Rule:
        return rule

    function.__name__ = function.__qualname__ = name
    return function


def from_grammar(grammar: Grammar) -> GrammarReferences:
    """
    Turn an existing grammar document (e.g. loaded with
    :py:meth:`.Grammar.from_json`) back into inputs for the DSL.
    """
    return GrammarReferences(grammar)
