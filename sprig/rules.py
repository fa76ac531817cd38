"""
The rule tree and grammar document produced by the DSL.

Both mirror the grammar schema understood by the downstream parser generator
and may be converted to and from that schema's JSON representation.
"""

from enum import Enum

from dataclasses import dataclass, field

from typing import (
    Any,
    Callable,
    Dict,
    Iterable,
    List,
    Mapping,
    Optional,
    Tuple,
    Union,
)

from sprig.errors import InvalidRuleError


__all__ = [
    "RuleType",
    "Precedence",
    "Rule",
    "StringRule",
    "PatternRule",
    "BlankRule",
    "SymbolRule",
    "SeqRule",
    "ChoiceRule",
    "RepeatRule",
    "Repeat1Rule",
    "PrecRule",
    "FieldRule",
    "AliasRule",
    "TokenRule",
    "ImmediateTokenRule",
    "rule_from_json",
    "Grammar",
]


class RuleType(Enum):
    """The type tags used by the grammar schema."""

    ALIAS = "ALIAS"
    BLANK = "BLANK"
    CHOICE = "CHOICE"
    FIELD = "FIELD"
    IMMEDIATE_TOKEN = "IMMEDIATE_TOKEN"
    PATTERN = "PATTERN"
    PREC = "PREC"
    PREC_DYNAMIC = "PREC_DYNAMIC"
    PREC_LEFT = "PREC_LEFT"
    PREC_RIGHT = "PREC_RIGHT"
    REPEAT = "REPEAT"
    REPEAT1 = "REPEAT1"
    SEQ = "SEQ"
    STRING = "STRING"
    SYMBOL = "SYMBOL"
    TOKEN = "TOKEN"


class Precedence(Enum):
    """The flavours of precedence which may be attached to a rule."""

    default = "PREC"
    left = "PREC_LEFT"
    right = "PREC_RIGHT"
    dynamic = "PREC_DYNAMIC"


class Rule:
    """A node in a grammar's rule tree. Abstract base class."""

    rule_type: RuleType
    """The schema type tag for this node."""

    def iter_children(self) -> Iterable["Rule"]:
        """Iterate over the immediate child rules of this rule."""
        return iter(())

    def to_json(self) -> Dict[str, Any]:
        """Return the JSON-compatible schema representation of this rule."""
        raise NotImplementedError()


@dataclass(frozen=True)
class StringRule(Rule):
    """Match a literal string."""

    value: str

    rule_type = RuleType.STRING

    def to_json(self) -> Dict[str, Any]:
        return {"type": self.rule_type.value, "value": self.value}


@dataclass(frozen=True)
class PatternRule(Rule):
    """Match a regular expression, given by its source text."""

    value: str

    rule_type = RuleType.PATTERN

    def to_json(self) -> Dict[str, Any]:
        return {"type": self.rule_type.value, "value": self.value}


@dataclass(frozen=True)
class BlankRule(Rule):
    """Match the empty string."""

    rule_type = RuleType.BLANK

    def to_json(self) -> Dict[str, Any]:
        return {"type": self.rule_type.value}


@dataclass(frozen=True)
class SymbolRule(Rule):
    """Reference a rule or external by name."""

    name: str

    rule_type = RuleType.SYMBOL

    def to_json(self) -> Dict[str, Any]:
        return {"type": self.rule_type.value, "name": self.name}


@dataclass(frozen=True)
class SeqRule(Rule):
    """Match each member, one after another."""

    members: Tuple[Rule, ...]

    rule_type = RuleType.SEQ

    def iter_children(self) -> Iterable[Rule]:
        return iter(self.members)

    def to_json(self) -> Dict[str, Any]:
        return {
            "type": self.rule_type.value,
            "members": [member.to_json() for member in self.members],
        }


@dataclass(frozen=True)
class ChoiceRule(Rule):
    """Match any one of the members."""

    members: Tuple[Rule, ...]

    rule_type = RuleType.CHOICE

    def iter_children(self) -> Iterable[Rule]:
        return iter(self.members)

    def to_json(self) -> Dict[str, Any]:
        return {
            "type": self.rule_type.value,
            "members": [member.to_json() for member in self.members],
        }


@dataclass(frozen=True)
class _UnaryRule(Rule):
    """A rule wrapping a single child rule."""

    content: Rule

    def iter_children(self) -> Iterable[Rule]:
        return iter((self.content,))

    def to_json(self) -> Dict[str, Any]:
        return {"type": self.rule_type.value, "content": self.content.to_json()}


@dataclass(frozen=True)
class RepeatRule(_UnaryRule):
    """Match zero-or-more repetitions of a rule."""

    rule_type = RuleType.REPEAT


@dataclass(frozen=True)
class Repeat1Rule(_UnaryRule):
    """Match one-or-more repetitions of a rule."""

    rule_type = RuleType.REPEAT1


@dataclass(frozen=True)
class TokenRule(_UnaryRule):
    """Treat everything matched by a rule as a single token."""

    rule_type = RuleType.TOKEN


@dataclass(frozen=True)
class ImmediateTokenRule(_UnaryRule):
    """
    Like :py:class:`TokenRule` but the token may not be preceded by any
    extras (e.g. whitespace).
    """

    rule_type = RuleType.IMMEDIATE_TOKEN


@dataclass(frozen=True)
class PrecRule(Rule):
    """Attach a numeric precedence (and possibly associativity) to a rule."""

    value: Union[int, float]
    content: Rule
    variant: Precedence = Precedence.default

    @property  # type: ignore
    def rule_type(self) -> RuleType:  # type: ignore
        return RuleType(self.variant.value)

    def iter_children(self) -> Iterable[Rule]:
        return iter((self.content,))

    def to_json(self) -> Dict[str, Any]:
        return {
            "type": self.rule_type.value,
            "value": self.value,
            "content": self.content.to_json(),
        }


@dataclass(frozen=True)
class FieldRule(Rule):
    """Give the nodes matched by a rule a field name in the syntax tree."""

    name: str
    content: Rule

    rule_type = RuleType.FIELD

    def iter_children(self) -> Iterable[Rule]:
        return iter((self.content,))

    def to_json(self) -> Dict[str, Any]:
        return {
            "type": self.rule_type.value,
            "name": self.name,
            "content": self.content.to_json(),
        }


@dataclass(frozen=True)
class AliasRule(Rule):
    """
    Make a rule appear under another name in the syntax tree. When
    :py:attr:`named` is False the rule appears as an anonymous node, as if it
    were the string :py:attr:`value`.
    """

    content: Rule
    named: bool
    value: str

    rule_type = RuleType.ALIAS

    def iter_children(self) -> Iterable[Rule]:
        return iter((self.content,))

    def to_json(self) -> Dict[str, Any]:
        return {
            "type": self.rule_type.value,
            "content": self.content.to_json(),
            "named": self.named,
            "value": self.value,
        }


def _unary(cls: Callable[[Rule], Rule]) -> Callable[[Mapping[str, Any]], Rule]:
    return lambda data: cls(rule_from_json(data["content"]))


def _prec(variant: Precedence) -> Callable[[Mapping[str, Any]], Rule]:
    return lambda data: PrecRule(
        data["value"], rule_from_json(data["content"]), variant
    )


_FROM_JSON: Mapping[str, Callable[[Mapping[str, Any]], Rule]] = {
    "STRING": lambda data: StringRule(data["value"]),
    "PATTERN": lambda data: PatternRule(data["value"]),
    "BLANK": lambda data: BlankRule(),
    "SYMBOL": lambda data: SymbolRule(data["name"]),
    "SEQ": lambda data: SeqRule(tuple(map(rule_from_json, data["members"]))),
    "CHOICE": lambda data: ChoiceRule(tuple(map(rule_from_json, data["members"]))),
    "REPEAT": _unary(RepeatRule),
    "REPEAT1": _unary(Repeat1Rule),
    "TOKEN": _unary(TokenRule),
    "IMMEDIATE_TOKEN": _unary(ImmediateTokenRule),
    "PREC": _prec(Precedence.default),
    "PREC_LEFT": _prec(Precedence.left),
    "PREC_RIGHT": _prec(Precedence.right),
    "PREC_DYNAMIC": _prec(Precedence.dynamic),
    "FIELD": lambda data: FieldRule(data["name"], rule_from_json(data["content"])),
    "ALIAS": lambda data: AliasRule(
        rule_from_json(data["content"]), bool(data["named"]), data["value"]
    ),
}


def rule_from_json(data: Mapping[str, Any]) -> Rule:
    """
    Convert a rule from its schema representation (e.g. as produced by
    :py:meth:`Rule.to_json`). Raises :py:exc:`.InvalidRuleError` when the
    representation is not recognised.
    """
    if not isinstance(data, Mapping) or data.get("type") not in _FROM_JSON:
        raise InvalidRuleError(f"invalid rule: {data!r}", value=data)
    try:
        return _FROM_JSON[data["type"]](data)
    except KeyError as exc:
        raise InvalidRuleError(
            f"invalid {data['type']} rule: missing {exc}", value=data
        ) from exc


@dataclass
class Grammar:
    """A grammar document, ready to be handed to a parser generator."""

    name: str
    """The name of the language described."""

    rules: Dict[str, Rule]
    """The rules of the grammar, in definition order."""

    extras: List[Rule] = field(default_factory=list)
    """Rules which may appear between any two tokens (e.g. whitespace)."""

    externals: List[Rule] = field(default_factory=list)
    """Tokens produced by an external scanner."""

    inline: List[str] = field(default_factory=list)
    """Names of rules to be inlined at every use."""

    conflicts: List[List[str]] = field(default_factory=list)
    """Groups of rule names whose ambiguity is intended."""

    word: Optional[str] = None
    """The name of the keyword extraction token, if any."""

    supertypes: List[str] = field(default_factory=list)
    """Names of hidden rules flagged as supertypes."""

    precedences: List[List[Rule]] = field(default_factory=list)
    r"""Ordered groups of :py:class:`StringRule`\ s and :py:class:`SymbolRule`\ s."""

    def names(self) -> List[str]:
        """The names of all rules and named externals in this grammar."""
        names = list(self.rules)
        for external in self.externals:
            if isinstance(external, SymbolRule) and external.name not in names:
                names.append(external.name)
        return names

    def to_json(self) -> Dict[str, Any]:
        """Return the JSON-compatible schema representation of this grammar."""
        out: Dict[str, Any] = {"name": self.name}
        if self.word is not None:
            out["word"] = self.word
        out["rules"] = {name: rule.to_json() for name, rule in self.rules.items()}
        out["extras"] = [rule.to_json() for rule in self.extras]
        out["precedences"] = [
            [rule.to_json() for rule in group] for group in self.precedences
        ]
        out["conflicts"] = [list(conflict) for conflict in self.conflicts]
        out["externals"] = [rule.to_json() for rule in self.externals]
        out["inline"] = list(self.inline)
        out["supertypes"] = list(self.supertypes)
        return out

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "Grammar":
        """Load a grammar from its schema representation."""
        return cls(
            name=data["name"],
            rules={
                name: rule_from_json(rule) for name, rule in data["rules"].items()
            },
            extras=[rule_from_json(rule) for rule in data.get("extras", [])],
            externals=[rule_from_json(rule) for rule in data.get("externals", [])],
            inline=list(data.get("inline", [])),
            conflicts=[list(conflict) for conflict in data.get("conflicts", [])],
            word=data.get("word"),
            supertypes=list(data.get("supertypes", [])),
            precedences=[
                [rule_from_json(rule) for rule in group]
                for group in data.get("precedences", [])
            ],
        )
