"""
Validator combinators from which each grammar section's validation is built.

Every validator has the signature ``(value, namespace, errors) -> result``
where ``namespace`` maps each name declared so far to the section which
declared it and ``errors`` is the :py:class:`.ErrorLog` of the current build.
Validators never raise themselves; problems are reported to the log (which
raises when the build is fail-fast).
"""

from copy import copy

from functools import wraps

from typing import (
    Any,
    Callable,
    List,
    Mapping,
    MutableMapping,
    Optional,
    TypeVar,
)

from sprig.errors import (
    ErrorLog,
    GrammarError,
    InvalidNameError,
    DuplicateNameError,
    UndeclaredReferenceError,
    StructuralShapeError,
)
from sprig.rules import Rule, SymbolRule, AliasRule
from sprig.dsl import is_valid_name, normalize


__all__ = [
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
]


T = TypeVar("T")

Namespace = MutableMapping[str, str]
"""Maps every name declared so far to the section which declared it."""

Validator = Callable[[Any, Namespace, ErrorLog], T]

Check = Callable[[Any, Namespace, ErrorLog], bool]


def is_array(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def require_array(
    context: str, fallback: T
) -> Callable[[Validator[T]], Validator[T]]:
    """
    Decorator. When the validated value is not a list (or tuple), log a
    :py:exc:`.StructuralShapeError` and produce ``fallback`` instead of calling
    the decorated validator.
    """

    def decorator(handler: Validator[T]) -> Validator[T]:
        @wraps(handler)
        def validator(value: Any, namespace: Namespace, errors: ErrorLog) -> T:
            if is_array(value):
                return handler(value, namespace, errors)
            errors.report(
                StructuralShapeError(f"{context} must be an array", context, value)
            )
            return copy(fallback)

        return validator

    return decorator


def require_object(
    context: str, fallback: T
) -> Callable[[Validator[T]], Validator[T]]:
    """
    Decorator. As :py:func:`require_array`, but the value must be a mapping.
    """

    def decorator(handler: Validator[T]) -> Validator[T]:
        @wraps(handler)
        def validator(value: Any, namespace: Namespace, errors: ErrorLog) -> T:
            if isinstance(value, Mapping):
                return handler(value, namespace, errors)
            errors.report(
                StructuralShapeError(f"{context} must be an object", context, value)
            )
            return copy(fallback)

        return validator

    return decorator


def allow_missing(fallback: T) -> Callable[[Validator[T]], Validator[T]]:
    """
    Decorator. When the value is missing (None), produce ``fallback`` without
    any validation.
    """

    def decorator(handler: Validator[T]) -> Validator[T]:
        @wraps(handler)
        def validator(value: Any, namespace: Namespace, errors: ErrorLog) -> T:
            if value is None:
                return copy(fallback)
            return handler(value, namespace, errors)

        return validator

    return decorator


def require_valid_name(context: str, section: Optional[str] = None) -> Check:
    """
    Check a name is an identifier, logging an :py:exc:`.InvalidNameError` if not.

    ``context`` names the kind of name in the message. The error is attributed
    to ``section``, which defaults to ``context``.
    """

    def check(name: Any, namespace: Namespace, errors: ErrorLog) -> bool:
        if is_valid_name(name):
            return True
        errors.report(
            InvalidNameError(
                f"invalid name in {context}: '{name}'", section or context, name
            )
        )
        return False

    return check


def require_declared(context: str, section: Optional[str] = None) -> Check:
    """
    Check a name has been declared, logging an
    :py:exc:`.UndeclaredReferenceError` if not. Arguments as
    :py:func:`require_valid_name`.
    """

    def check(name: Any, namespace: Namespace, errors: ErrorLog) -> bool:
        if name in namespace:
            return True
        errors.report(
            UndeclaredReferenceError(
                f"invalid {context}: name '{name}' not in namespace",
                section or context,
                name,
            )
        )
        return False

    return check


def require_not_declared(context: str, section: Optional[str] = None) -> Check:
    """
    Check a name has not been declared yet, logging a
    :py:exc:`.DuplicateNameError` if it has.
    """

    def check(name: Any, namespace: Namespace, errors: ErrorLog) -> bool:
        if name not in namespace:
            return True
        errors.report(
            DuplicateNameError(
                f"{context} name '{name}' has already been declared "
                f"in {namespace[name]}",
                section or context,
                name,
            )
        )
        return False

    return check


def declare(
    name: str,
    tag: str,
    namespace: Namespace,
    errors: ErrorLog,
    section: Optional[str] = None,
) -> bool:
    """
    Declare a name in the namespace on behalf of ``tag``. A name may only be
    declared once: a second declaration is logged (against ``section``, which
    defaults to ``tag``) and the first is kept. Returns True if the name was
    declared.
    """
    if not require_not_declared(tag, section)(name, namespace, errors):
        return False
    namespace[name] = tag
    return True


def normalizable(context: str) -> Validator[Optional[Rule]]:
    """
    Validator which normalizes a raw rule, logging the failure and producing
    None when this is not possible.
    """

    def validator(value: Any, namespace: Namespace, errors: ErrorLog) -> Optional[Rule]:
        try:
            return normalize(value)
        except GrammarError as error:
            if error.section is None:
                error.section = context
            errors.report(error)
            return None

    return validator


def name_of(value: Any) -> Any:
    """
    The name given by an entry in a list of names: the string itself, the name
    of a :py:class:`.SymbolRule` or the name of a function. Anything else is
    returned unchanged (and will fail :py:func:`require_valid_name`).
    """
    if isinstance(value, SymbolRule):
        return value.name
    elif callable(value) and not isinstance(value, Rule):
        return getattr(value, "__name__", value)
    else:
        return value


def referenced_name(rule: Rule) -> Optional[str]:
    """The name referred to by a symbol or alias, or None for other rules."""
    if isinstance(rule, SymbolRule):
        return rule.name
    elif isinstance(rule, AliasRule):
        return rule.value
    else:
        return None


def collect_symbols(rule: Rule, symbols: Optional[List[str]] = None) -> List[str]:
    """
    Return the names of all symbols used within a rule, in the order first
    encountered. Names are appended to ``symbols``, if given, unless already
    present.
    """
    if symbols is None:
        symbols = []

    if isinstance(rule, SymbolRule) and rule.name not in symbols:
        symbols.append(rule.name)
    for child in rule.iter_children():
        collect_symbols(child, symbols)

    return symbols
