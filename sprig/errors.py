"""
Errors produced while building a grammar and the log which collects them.
"""

import logging

from dataclasses import dataclass

from typing import Any, Iterator, List, Optional


__all__ = [
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
]


_logger = logging.getLogger(__name__)


@dataclass(eq=False)
class GrammarError(Exception):
    """
    Base class of all errors raised or logged while building a grammar.

    Parameters
    ----------
    message : str
        A human readable description of the problem.
    section : str or None
        The grammar section (e.g. ``"rules"`` or ``"conflicts"``) being
        processed when the problem was found, if any.
    value : any
        The offending value, if any.
    """

    message: str
    section: Optional[str] = None
    value: Any = None

    def __post_init__(self) -> None:
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class ArityError(GrammarError):
    """A combinator was called with the wrong number of rule arguments."""


class MissingPrecedenceError(GrammarError):
    """A precedence combinator was not given a precedence value."""


class InvalidRuleError(GrammarError):
    """A value could not be converted into a rule."""


class UndefinedSymbolError(InvalidRuleError):
    """``None`` was used where a rule was expected."""


class InvalidAliasTargetError(GrammarError):
    """An alias target was neither a string nor a symbol."""


class InvalidNameError(GrammarError):
    """A name does not have the form of an identifier."""


class MismatchedNameError(InvalidNameError):
    """An external was declared under a different name to the symbol it names."""


class DuplicateNameError(GrammarError):
    """A name was declared more than once."""


class UndeclaredReferenceError(GrammarError):
    """A name was referenced which is neither a rule nor an external."""


class InvalidSupertypeError(GrammarError):
    """An alias was listed as a supertype."""


class StructuralShapeError(GrammarError):
    """A grammar section (or part of one) has the wrong shape."""


class NoRulesError(StructuralShapeError):
    """The grammar defines no rules."""


class ErrorLog:
    """
    Collects the :py:exc:`GrammarError`\\ s reported during a single grammar
    build.

    In the fail-fast posture, the first error reported is raised immediately.
    Otherwise errors are recorded, in the order reported, for the caller to
    inspect once the build completes.

    Parameters
    ----------
    fail_fast : bool
        If True, :py:meth:`report` raises rather than records.
    logger : :py:class:`logging.Logger` or None
        Receives a debug message for every error reported. Defaults to this
        module's logger.
    """

    errors: List[GrammarError]
    """The errors reported so far (always empty when fail-fast)."""

    def __init__(
        self, fail_fast: bool = False, logger: Optional[logging.Logger] = None
    ) -> None:
        self.fail_fast = fail_fast
        self.logger = logger if logger is not None else _logger
        self.errors = []

    def report(self, error: GrammarError) -> None:
        """Record (or, when fail-fast, raise) an error."""
        self.logger.debug("grammar error in %s: %s", error.section, error)
        if self.fail_fast:
            raise error
        self.errors.append(error)

    def __iter__(self) -> Iterator[GrammarError]:
        return iter(self.errors)

    def __len__(self) -> int:
        return len(self.errors)

    def __bool__(self) -> bool:
        return bool(self.errors)
