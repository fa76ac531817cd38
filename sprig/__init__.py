r"""
Sprig is a small library for describing grammars for tree-sitter style parser
generators in plain Python.

A grammar is given as a dictionary of sections, with each rule written using a
set of combinator functions. Sprig checks that every name used by the grammar
has been defined and produces a grammar document which may be serialised to
the JSON format consumed by the parser generator.

Basic usage
===========

Rules are written as functions returning the rule's definition. For example, a
grammar for nested lists of numbers such as ``[1, 20, [300]]``::

    >>> import re
    >>> from sprig import grammar, seq, choice, optional, repeat

    >>> def number():
    ...     return re.compile(r"[0-9]+")

    >>> def list_of_values():
    ...     return seq("[", optional(seq(value, repeat(seq(",", value)))), "]")

    >>> def value():
    ...     return choice(list_of_values, number)

    >>> g = grammar({
    ...     "name": "lists",
    ...     "rules": {
    ...         "value": value,
    ...         "list_of_values": list_of_values,
    ...         "number": number,
    ...     },
    ... })

Within a rule, strings match literals, compiled regular expressions match
patterns and functions refer to the rule of the same name. Because functions
are referred to by name (rather than called), rules may refer to themselves or
to rules defined later on.

The resulting :py:class:`.Grammar` may be converted into its JSON
representation using :py:meth:`.Grammar.to_json`::

    >>> g.to_json()["rules"]["number"]
    {'type': 'PATTERN', 'value': '[0-9]+'}

Unless specified otherwise, whitespace may appear between any two tokens::

    >>> g.extras
    [PatternRule(value='\\s')]

The builder style
-----------------

Rules may alternatively be written as functions taking a
:py:class:`.RuleBuilder` (conventionally called ``r``). Any attribute of the
builder is a reference to the rule of that name::

    >>> g = grammar({
    ...     "name": "pairs",
    ...     "rules": {
    ...         "pair": lambda r: seq(r.key, ":", r.key),
    ...         "key": lambda r: re.compile(r"[a-z]+"),
    ...     },
    ... })
    >>> g.rules["pair"]
    SeqRule(members=(SymbolRule(name='key'), StringRule(value=':'), SymbolRule(name='key')))

Every section other than ``name`` and ``rules`` may also be given as a function
taking the builder, e.g. ``"word": lambda r: r.identifier``.

Grammar sections
================

``name``
    The name of the language. Must be an identifier.
``rules``
    A dictionary of rule functions. At least one rule is required.
``externals``
    A dictionary of tokens produced by an external scanner, e.g.
    ``{"indent": external("indent")}``.
``extras``
    Rules which may appear between any two tokens. Defaults to whitespace.
``inline``
    Names of rules to be inlined wherever they are used.
``conflicts``
    Lists of (at least two) rule names whose ambiguity is intended.
``word``
    The name of the keyword extraction token.
``supertypes``
    Names of hidden rules to be treated as supertypes.
``precedences``
    Lists of precedence names (strings) and rule references, in descending
    order of precedence.

Names in ``inline``, ``conflicts``, ``word`` and ``supertypes`` may be given
as strings, as :py:func:`sym`\ s or as rule functions.

Error handling
==============

The :py:func:`.grammar` function raises the first :py:exc:`.GrammarError`
found::

    >>> grammar({"name": "bad", "rules": {"start": lambda r: r.undefined}})
    Traceback (most recent call last):
      ...
    sprig.errors.UndeclaredReferenceError: invalid rules: name 'undefined' not in namespace

Alternatively :py:func:`.validate_grammar` finds every problem at once,
returning a best-effort grammar along with a list of errors::

    >>> from sprig import validate_grammar, format_error_report
    >>> g, errors = validate_grammar({
    ...     "name": "bad",
    ...     "rules": {"start": lambda r: r.undefined},
    ...     "inline": ["missing"],
    ... })
    >>> print(format_error_report(errors))
    2 errors:
        In rules: invalid rules: name 'undefined' not in namespace
        In inline: invalid inline: name 'missing' not in namespace

Both functions accept a ``logger`` argument: a :py:class:`logging.Logger`
which receives debug messages as the grammar is built.

Extending grammars
==================

An existing grammar may be extended by passing it as the ``base`` argument.
Rules given replace those of the base grammar with the same name, all others
being inherited. Rule functions are passed the rule they replace as a second
argument::

    >>> from sprig import choice
    >>> extended = grammar(
    ...     {"rules": {"key": lambda r, original: choice(original, r.number),
    ...                "number": lambda r: re.compile(r"[0-9]+")}},
    ...     base=g,
    ... )
    >>> extended.rules["key"]
    ChoiceRule(members=(PatternRule(value='[a-z]+'), SymbolRule(name='number')))

A grammar loaded from JSON (see :py:meth:`.Grammar.from_json`) may be turned
back into DSL inputs using :py:func:`.from_grammar`.

API
===

Grammar construction
--------------------

.. autofunction:: sprig.grammar

.. autofunction:: sprig.validate_grammar

.. autoclass:: sprig.GrammarBuild
    :members:

.. autoclass:: sprig.GrammarAssembler
    :members: assemble

Rule combinators
----------------

.. autofunction:: sprig.normalize

.. autofunction:: sprig.seq

.. autofunction:: sprig.choice

.. autofunction:: sprig.optional

.. autofunction:: sprig.repeat

.. autofunction:: sprig.repeat1

.. autofunction:: sprig.field

.. autofunction:: sprig.alias

.. autofunction:: sprig.prec

.. autofunction:: sprig.prec_left

.. autofunction:: sprig.prec_right

.. autofunction:: sprig.prec_dynamic

.. autofunction:: sprig.token

.. autofunction:: sprig.immediate_token

.. autofunction:: sprig.blank

.. autofunction:: sprig.sym

.. autofunction:: sprig.string

.. autofunction:: sprig.pattern

.. autoclass:: sprig.RuleBuilder

.. autofunction:: sprig.external

.. autofunction:: sprig.from_grammar

.. autoclass:: sprig.GrammarReferences
    :members:

Grammar documents
-----------------

.. autoclass:: sprig.Grammar
    :members:

.. autoclass:: sprig.Rule
    :members:

.. autofunction:: sprig.rule_from_json

Errors
------

.. autoexception:: sprig.GrammarError

.. autoexception:: sprig.ArityError

.. autoexception:: sprig.MissingPrecedenceError

.. autoexception:: sprig.InvalidRuleError

.. autoexception:: sprig.UndefinedSymbolError

.. autoexception:: sprig.InvalidAliasTargetError

.. autoexception:: sprig.InvalidNameError

.. autoexception:: sprig.MismatchedNameError

.. autoexception:: sprig.DuplicateNameError

.. autoexception:: sprig.UndeclaredReferenceError

.. autoexception:: sprig.InvalidSupertypeError

.. autoexception:: sprig.StructuralShapeError

.. autoexception:: sprig.NoRulesError

.. autoclass:: sprig.ErrorLog
    :members:

.. autofunction:: sprig.format_error_report
"""

from sprig.version import __version__

from sprig.rules import *
from sprig.errors import *
from sprig.dsl import *
from sprig.validators import *
from sprig.assembler import *
from sprig.error_message_generation import *

# NB: We explicitly list all re-exported names here since mypy (in strict
# mode) won't re-export names imported with '*'.
__all__ = [
    # rules.*
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
    # errors.*
    "GrammarError",
    "ArityError",
    "MissingPrecedenceError",
    "InvalidRuleError",
    "UndefinedSymbolError",
    "InvalidAliasTargetError",
    "InvalidNameError",
    "MismatchedNameError",
    "DuplicateNameError",
    "UndeclaredReferenceError",
    "InvalidSupertypeError",
    "StructuralShapeError",
    "NoRulesError",
    "ErrorLog",
    # dsl.*
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
    # validators.*
    "Namespace",
    "Validator",
    "require_array",
    "require_object",
    "allow_missing",
    "require_valid_name",
    "require_declared",
    "require_not_declared",
    "declare",
    "normalizable",
    "name_of",
    "referenced_name",
    "collect_symbols",
    # assembler.*
    "SECTIONS",
    "GrammarBuild",
    "GrammarAssembler",
    "grammar",
    "validate_grammar",
    # error_message_generation.*
    "format_error",
    "format_error_report",
]
