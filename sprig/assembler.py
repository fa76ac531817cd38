"""
Assembly and validation of whole grammars.

A grammar is described by a mapping of sections (``name``, ``rules``,
``externals`` and so on). The sections are validated in a fixed order since
each may declare names which later sections refer to:

1. ``name``
2. ``externals`` (declares external names)
3. ``rules`` (declares rule names, then checks every reference between rules)
4. ``extras``
5. ``inline``
6. ``conflicts``
7. ``word``
8. ``supertypes``
9. ``precedences``
"""

import inspect
import logging

from copy import deepcopy

from typing import (
    Any,
    Callable,
    Dict,
    List,
    Mapping,
    NamedTuple,
    Optional,
)

from sprig.errors import (
    ErrorLog,
    GrammarError,
    InvalidRuleError,
    InvalidSupertypeError,
    MismatchedNameError,
    NoRulesError,
    StructuralShapeError,
)
from sprig.rules import (
    Rule,
    PatternRule,
    StringRule,
    SymbolRule,
    AliasRule,
    Grammar,
)
from sprig.dsl import RuleBuilder, is_rule
from sprig.validators import (
    Namespace,
    Validator,
    is_array,
    require_array,
    require_object,
    allow_missing,
    require_valid_name,
    require_declared,
    require_not_declared,
    declare,
    normalizable,
    name_of,
    referenced_name,
    collect_symbols,
)
from sprig.error_message_generation import format_error_report


__all__ = [
    "SECTIONS",
    "GrammarBuild",
    "GrammarAssembler",
    "grammar",
    "validate_grammar",
]


_logger = logging.getLogger(__name__)


SECTIONS = (
    "name",
    "externals",
    "rules",
    "extras",
    "inline",
    "conflicts",
    "word",
    "supertypes",
    "precedences",
)
"""The recognised grammar sections, in the order they are processed."""

INVALID_NAME = "INVALID"
"""Stands in for a grammar name which failed validation."""

WHITESPACE = PatternRule(r"\s")
"""The default extra: any whitespace character."""


def _positional_arity(function: Callable[..., Any]) -> Optional[int]:
    """
    The number of positional arguments a function accepts, or None if it
    accepts any number (or this cannot be determined).
    """
    try:
        parameters = inspect.signature(function).parameters.values()
    except (TypeError, ValueError):
        return None
    arity = 0
    for parameter in parameters:
        if parameter.kind == parameter.VAR_POSITIONAL:
            return None
        elif parameter.kind in (
            parameter.POSITIONAL_ONLY,
            parameter.POSITIONAL_OR_KEYWORD,
        ):
            arity += 1
    return arity


def call_with_builder(function: Callable[..., Any], *args: Any) -> Any:
    """
    Call a section or rule function with as many of ``args`` (the rule
    builder, then the original value from the base grammar) as it accepts.
    """
    arity = _positional_arity(function)
    if arity is None:
        return function(*args)
    return function(*args[:arity])


def is_builder_function(value: Any) -> bool:
    """
    Is this a section written in the builder style, i.e. a function taking the
    rule builder? Zero-argument functions are references to rules instead.
    """
    if not callable(value) or is_rule(value):
        return False
    arity = _positional_arity(value)
    return arity is None or arity > 0


def validate_name(name: Any, namespace: Namespace, errors: ErrorLog) -> str:
    if require_valid_name("grammar", "name")(name, namespace, errors):
        return name
    return INVALID_NAME


@require_array("externals", [])
def validate_external_list(
    externals: List[Any], namespace: Namespace, errors: ErrorLog
) -> List[Rule]:
    """Externals given as a list of rules (as returned by a builder function)."""
    results: List[Rule] = []
    for raw in externals:
        rule = normalizable("externals")(raw, namespace, errors)
        if rule is None:
            continue
        if isinstance(rule, SymbolRule):
            if not require_valid_name("externals")(rule.name, namespace, errors):
                continue
            declare(rule.name, "externals", namespace, errors)
        results.append(rule)
    return results


@allow_missing([])
@require_object("externals", [])
def validate_external_mapping(
    externals: Mapping[str, Any], namespace: Namespace, errors: ErrorLog
) -> List[Rule]:
    """Externals given as a mapping from each name to its rule."""
    results: List[Rule] = []
    for name, raw in externals.items():
        if not require_valid_name("externals")(name, namespace, errors):
            continue
        rule = normalizable("externals")(raw, namespace, errors)
        if rule is None:
            continue
        if isinstance(rule, SymbolRule) and rule.name != name:
            errors.report(
                MismatchedNameError(
                    f"mismatched external rule names '{name}' and '{rule.name}'",
                    "externals",
                    raw,
                )
            )
            continue
        declare(name, "externals", namespace, errors)
        results.append(rule)
    return results


def rules_validator(
    builder: RuleBuilder, original: Mapping[str, Rule]
) -> Validator[Dict[str, Rule]]:
    """
    Produce the validator for the ``rules`` section. Rules inherited from a
    base grammar (``original``) are kept unless redefined.
    """

    @require_object("rules", {})
    def validate_rules(
        rules: Mapping[str, Any], namespace: Namespace, errors: ErrorLog
    ) -> Dict[str, Rule]:
        # Every name is declared before any rule is built so that rules may
        # refer to rules defined after them.
        for name in original:
            declare(name, "rule", namespace, errors, "rules")
        functions: Dict[str, Callable[..., Any]] = {}
        for name, function in rules.items():
            if not require_valid_name("rules")(name, namespace, errors):
                continue
            if not callable(function) or is_rule(function):
                errors.report(
                    StructuralShapeError(
                        f"rule '{name}' must be a function, was {function!r}",
                        "rules",
                        function,
                    )
                )
                continue
            if name not in original:
                declare(name, "rule", namespace, errors, "rules")
            functions[name] = function

        results = dict(original)
        for name, function in functions.items():
            try:
                raw = call_with_builder(function, builder, original.get(name))
            except GrammarError as error:
                if error.section is None:
                    error.section = "rules"
                errors.report(error)
                continue
            rule = normalizable("rules")(raw, namespace, errors)
            if rule is not None:
                results[name] = rule

        if not results:
            errors.report(
                NoRulesError("Grammar must have at least one rule", "rules", rules)
            )

        symbols: List[str] = []
        for rule in results.values():
            collect_symbols(rule, symbols)
        for symbol in symbols:
            require_declared("rules")(symbol, namespace, errors)

        return results

    return validate_rules


def extras_validator(allow_references: bool) -> Validator[List[Rule]]:
    """
    Produce the validator for the ``extras`` section.

    By default extras may not name anything already declared. When
    ``allow_references`` is True, extras may instead refer to declared rules
    (e.g. a ``comment`` rule) and every symbol they use must be declared.
    """

    @allow_missing([WHITESPACE])
    @require_array("extras", [])
    def validate_extras(
        extras: List[Any], namespace: Namespace, errors: ErrorLog
    ) -> List[Rule]:
        results: List[Rule] = []
        for raw in extras:
            rule = normalizable("extras")(raw, namespace, errors)
            if rule is None:
                continue
            if allow_references:
                for symbol in collect_symbols(rule):
                    require_declared("extras")(symbol, namespace, errors)
            else:
                name = referenced_name(rule)
                if name is not None:
                    require_not_declared("extras")(name, namespace, errors)
            results.append(rule)
        return results

    return validate_extras


@allow_missing([])
@require_array("inline", [])
def validate_inline(
    inline: List[Any], namespace: Namespace, errors: ErrorLog
) -> List[str]:
    results = []
    for entry in inline:
        name = name_of(entry)
        if require_valid_name("inline")(name, namespace, errors):
            require_declared("inline")(name, namespace, errors)
            results.append(name)
    return results


@allow_missing([])
@require_array("conflicts", [])
def validate_conflicts(
    conflicts: List[Any], namespace: Namespace, errors: ErrorLog
) -> List[List[str]]:
    results = []
    for conflict in conflicts:
        if not is_array(conflict):
            errors.report(
                StructuralShapeError(
                    f"invalid conflict {conflict!r}: must be an array",
                    "conflicts",
                    conflict,
                )
            )
            continue

        names = [
            name
            for name in map(name_of, conflict)
            if require_valid_name("conflict", "conflicts")(name, namespace, errors)
            and require_declared("conflict", "conflicts")(name, namespace, errors)
        ]
        if len(names) < 2:
            errors.report(
                StructuralShapeError(
                    f"invalid conflict {names!r} of length {len(names)}",
                    "conflicts",
                    conflict,
                )
            )
            continue

        results.append(names)
    return results


def validate_word(word: Any, namespace: Namespace, errors: ErrorLog) -> Optional[str]:
    if word is None:
        return None
    name = name_of(word)
    if not require_valid_name("word")(name, namespace, errors):
        return None
    if not require_declared("word")(name, namespace, errors):
        return None
    return name


@allow_missing([])
@require_array("supertypes", [])
def validate_supertypes(
    supertypes: List[Any], namespace: Namespace, errors: ErrorLog
) -> List[str]:
    results = []
    for entry in supertypes:
        if isinstance(entry, AliasRule):
            errors.report(
                InvalidSupertypeError(
                    f"supertype {entry!r} cannot be an alias", "supertypes", entry
                )
            )
            continue
        name = name_of(entry)
        if require_valid_name("supertypes")(name, namespace, errors):
            require_declared("supertype", "supertypes")(name, namespace, errors)
            results.append(name)
    return results


@allow_missing([])
@require_array("precedences", [])
def validate_precedences(
    precedences: List[Any], namespace: Namespace, errors: ErrorLog
) -> List[List[Rule]]:
    results = []
    for i, group in enumerate(precedences):
        if not is_array(group):
            errors.report(
                StructuralShapeError(
                    f"precedences[{i}] must be an array", "precedences", group
                )
            )
            continue

        group_results: List[Rule] = []
        for j, raw in enumerate(group):
            rule = normalizable("precedences")(raw, namespace, errors)
            if isinstance(rule, SymbolRule):
                require_declared("precedences")(rule.name, namespace, errors)
                group_results.append(rule)
            elif isinstance(rule, StringRule):
                group_results.append(rule)
            elif rule is not None:
                errors.report(
                    InvalidRuleError(
                        f"precedences[{i}][{j}] must be a string or symbol: {rule!r}",
                        "precedences",
                        raw,
                    )
                )
        results.append(group_results)
    return results


class GrammarBuild(NamedTuple):
    """The result of :py:func:`validate_grammar`."""

    grammar: Grammar
    """The (best-effort) grammar document."""

    errors: List[GrammarError]
    """Every problem found, in the order found."""


class GrammarAssembler:
    """
    Validates each section of a grammar description in turn, producing a
    :py:class:`.Grammar`.

    An assembler holds the namespace for a single build and should not be
    reused.

    Parameters
    ----------
    errors : :py:class:`.ErrorLog`
        Receives every problem found. Whether the build stops at the first
        problem is determined by the log.
    base : :py:class:`.Grammar` or None
        An existing grammar to extend. Its rules and externals are inherited,
        sections not given inherit the base's value and section functions
        are passed the base's value as a second argument.
    allow_extra_references : bool
        If True, extras may refer to declared rules. Otherwise extras may not
        name anything already declared.
    logger : :py:class:`logging.Logger` or None
        Receives debug messages as each section is processed. Defaults to this
        module's logger.
    builder : :py:class:`.RuleBuilder` or None
        The object passed to builder-style section and rule functions.
    """

    namespace: Namespace
    """Maps every name declared so far to the section which declared it."""

    def __init__(
        self,
        errors: ErrorLog,
        base: Optional[Grammar] = None,
        allow_extra_references: bool = False,
        logger: Optional[logging.Logger] = None,
        builder: Optional[RuleBuilder] = None,
    ) -> None:
        self.errors = errors
        self.base = base
        self.allow_extra_references = allow_extra_references
        self.logger = logger if logger is not None else _logger
        self.builder = builder if builder is not None else RuleBuilder()
        self.namespace = {}

    def _evaluate(self, section: str, value: Any, original: Any) -> Any:
        """Run a section given in the builder style to obtain its value."""
        if not is_builder_function(value):
            return value
        try:
            return call_with_builder(value, self.builder, original)
        except GrammarError as error:
            if error.section is None:
                error.section = section
            self.errors.report(error)
            return original

    def _is_declared_function(self, value: Any) -> bool:
        return (
            callable(value)
            and not is_rule(value)
            and getattr(value, "__name__", None) in self.namespace
        )

    def _name(self, options: Mapping[str, Any]) -> str:
        name = options.get("name")
        if name is None and self.base is not None:
            return self.base.name
        return validate_name(name, self.namespace, self.errors)

    def _externals(self, options: Mapping[str, Any]) -> List[Rule]:
        original = list(self.base.externals) if self.base is not None else []
        value = options.get("externals")
        if value is None:
            # Inherited externals are re-declared, but were validated already
            for rule in original:
                if isinstance(rule, SymbolRule):
                    declare(rule.name, "externals", self.namespace, self.errors)
            return original

        value = self._evaluate("externals", value, original)
        if is_array(value):
            return validate_external_list(value, self.namespace, self.errors)
        else:
            return validate_external_mapping(value, self.namespace, self.errors)

    def _rules(self, options: Mapping[str, Any]) -> Dict[str, Rule]:
        original = dict(self.base.rules) if self.base is not None else {}
        value = options.get("rules")
        if value is None:
            value = {}
        validate_rules = rules_validator(self.builder, original)
        return validate_rules(value, self.namespace, self.errors)

    def _section(
        self,
        options: Mapping[str, Any],
        section: str,
        validator: Validator[Any],
        original: Any,
        inherited: Any,
        names_rule: bool = False,
    ) -> Any:
        """
        Validate one of the sections which only refers to names declared by
        earlier sections. ``original`` is passed to builder-style functions;
        ``inherited`` is copied (unvalidated) when the section is not given
        and a base grammar is being extended.

        When ``names_rule`` is True the section's value is a single name, so a
        function named after a declared rule or external refers to it rather
        than being run as a builder-style function.
        """
        value = options.get(section)
        if value is None and self.base is not None:
            return deepcopy(inherited)
        if names_rule and self._is_declared_function(value):
            return validator(name_of(value), self.namespace, self.errors)
        value = self._evaluate(section, value, original)
        return validator(value, self.namespace, self.errors)

    def assemble(self, options: Mapping[str, Any]) -> Grammar:
        """Validate a grammar description, producing the grammar document."""
        if not isinstance(options, Mapping):
            self.errors.report(
                StructuralShapeError("grammar must be an object", None, options)
            )
            options = {}
        for section in options:
            if section not in SECTIONS:
                self.errors.report(
                    StructuralShapeError(
                        f"unknown grammar section '{section}'", None, section
                    )
                )

        # Supplies the ``original`` value of each section without a base
        base = self.base if self.base is not None else Grammar("", {})

        self.logger.debug("validating grammar name")
        name = self._name(options)
        self.logger.debug("validating externals of %s", name)
        externals = self._externals(options)
        self.logger.debug("validating rules of %s", name)
        rules = self._rules(options)

        self.logger.debug("validating extras of %s", name)
        extras = self._section(
            options,
            "extras",
            extras_validator(self.allow_extra_references),
            base.extras if self.base is not None else [WHITESPACE],
            base.extras,
        )
        self.logger.debug("validating inline of %s", name)
        inline = self._section(
            options,
            "inline",
            validate_inline,
            [SymbolRule(n) for n in base.inline],
            base.inline,
        )
        self.logger.debug("validating conflicts of %s", name)
        conflicts = self._section(
            options,
            "conflicts",
            validate_conflicts,
            [[SymbolRule(n) for n in conflict] for conflict in base.conflicts],
            base.conflicts,
        )
        self.logger.debug("validating word of %s", name)
        word = self._section(
            options, "word", validate_word, base.word, base.word, names_rule=True
        )
        self.logger.debug("validating supertypes of %s", name)
        supertypes = self._section(
            options,
            "supertypes",
            validate_supertypes,
            [SymbolRule(n) for n in base.supertypes],
            base.supertypes,
        )
        self.logger.debug("validating precedences of %s", name)
        precedences = self._section(
            options,
            "precedences",
            validate_precedences,
            base.precedences,
            base.precedences,
        )

        return Grammar(
            name=name,
            rules=rules,
            extras=extras,
            externals=externals,
            inline=inline,
            conflicts=conflicts,
            word=word,
            supertypes=supertypes,
            precedences=precedences,
        )


def grammar(
    options: Mapping[str, Any],
    base: Optional[Grammar] = None,
    *,
    logger: Optional[logging.Logger] = None,
    allow_extra_references: bool = False,
) -> Grammar:
    """
    Build a grammar, raising the first :py:exc:`.GrammarError` found.

    Parameters
    ----------
    options : mapping
        The grammar description: ``name``, ``rules`` and optionally
        ``externals``, ``extras``, ``inline``, ``conflicts``, ``word``,
        ``supertypes`` and ``precedences``.
    base : :py:class:`.Grammar` or None
        An existing grammar to extend.
    logger : :py:class:`logging.Logger` or None
        Receives debug messages during the build.
    allow_extra_references : bool
        If True, extras may refer to declared rules.
    """
    errors = ErrorLog(fail_fast=True, logger=logger)
    assembler = GrammarAssembler(
        errors,
        base=base,
        allow_extra_references=allow_extra_references,
        logger=logger,
    )
    return assembler.assemble(options)


def validate_grammar(
    options: Mapping[str, Any],
    base: Optional[Grammar] = None,
    *,
    logger: Optional[logging.Logger] = None,
    allow_extra_references: bool = False,
) -> GrammarBuild:
    """
    Build a grammar, collecting every problem found rather than stopping at the
    first. Sections with problems are replaced or trimmed so a best-effort
    grammar is always produced. Takes the same arguments as :py:func:`grammar`.
    """
    errors = ErrorLog(logger=logger)
    assembler = GrammarAssembler(
        errors,
        base=base,
        allow_extra_references=allow_extra_references,
        logger=logger,
    )
    result = assembler.assemble(options)
    if errors:
        assembler.logger.debug("%s", format_error_report(errors))
    return GrammarBuild(result, list(errors))
