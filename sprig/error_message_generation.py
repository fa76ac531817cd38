"""
Utility functions for generating error messages.
"""

from typing import Iterable

from textwrap import indent

from sprig.errors import GrammarError


__all__ = [
    "format_error",
    "format_error_report",
]


def format_error(error: GrammarError) -> str:
    """
    Generate a one-error message of the style::

        In rules: invalid rules: name 'foo' not in namespace

    Errors not attributed to a section are given without the ``In ...:``
    prefix.
    """
    if error.section is None:
        return str(error)
    else:
        return f"In {error.section}: {error}"


def format_error_report(errors: Iterable[GrammarError]) -> str:
    """
    Generate a report for all of the errors found in a grammar, of the style::

        2 errors:
            In name: invalid name in grammar: '1x'
            In rules: Grammar must have at least one rule

    Messages spanning several lines have every line indented.
    """
    errors = list(errors)
    noun = "error" if len(errors) == 1 else "errors"
    body = "\n".join(format_error(error) for error in errors)
    if body:
        return f"{len(errors)} {noun}:\n{indent(body, '    ')}"
    else:
        return f"{len(errors)} {noun}"
