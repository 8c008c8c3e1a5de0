"""Exception taxonomy for module expansion.

Expansion errors are raised once at the failing leaf and then annotated
by every enclosing template level on the way out. The exception object
keeps its type while :meth:`ModuleError.add_context` prepends frames, so
``str(err)`` reads outermost-first as a single chain::

    error expanding object {...} in array with parameters {...}:
    error expanding string "`x+`" with parameters {...}: invalid syntax
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any


def describe_bindings(bindings: Mapping[str, Any] | None) -> str:
    """JSON view of a binding context for error messages.

    Callables and other non-JSON values are left out.
    """
    if not bindings:
        return "{}"
    plain = {
        k: v for k, v in dict(bindings).items()
        if isinstance(v, (int, float, str, bool)) or v is None
    }
    return json.dumps(plain)


def describe_fragment(fragment: Any) -> str:
    """Compact JSON view of a template fragment."""
    try:
        return json.dumps(fragment)
    except (TypeError, ValueError):
        return repr(fragment)


class ModuleError(Exception):
    """Base class for every module definition / expansion failure."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
        self.trail: list[str] = []

    def add_context(self, frame: str) -> None:
        """Record an enclosing expansion level (innermost first)."""
        self.trail.append(frame)

    def __str__(self) -> str:
        return ": ".join([*reversed(self.trail), self.message])


class ExpressionError(ModuleError):
    """The expression evaluator rejected or failed on an expression."""

    def __init__(self, expr: str, cause: BaseException) -> None:
        super().__init__(f"{type(cause).__name__}: {cause}")
        self.expr = expr
        self.cause = cause


class RangeParseError(ModuleError):
    """Malformed variable range descriptor or failed sub-expression."""

    def __init__(
        self,
        text: str,
        bindings: Mapping[str, Any] | None,
        cause: BaseException | str,
    ) -> None:
        super().__init__(
            f'error parsing variable range "{text}" with parameters '
            f"{describe_bindings(bindings)}: {cause}"
        )
        self.text = text
        self.bindings = dict(bindings) if bindings else {}
        self.cause = cause


class TemplateExpansionError(ModuleError):
    """Evaluator failure inside string, object or array expansion."""

    def __init__(
        self,
        fragment: Any,
        bindings: Mapping[str, Any] | None,
        cause: BaseException | str,
    ) -> None:
        super().__init__(str(cause))
        self.fragment = fragment
        self.bindings = dict(bindings) if bindings else {}
        self.cause = cause


class LoopTooLargeError(ModuleError):
    """A loop range or the Cartesian product exceeds ``maxLoopLength``."""

    def __init__(self, variable: str | None, max_loop_length: int) -> None:
        if variable is None:
            message = (
                "The length of the loop is too large. "
                f"Please set maxLoopLength to a value above {max_loop_length}."
            )
        else:
            message = (
                f'The length of the loop variable "{variable}" is too large. '
                f"Please set maxLoopLength to a value above {max_loop_length}."
            )
        super().__init__(message)
        self.variable = variable
        self.max_loop_length = max_loop_length


class UnknownTypeError(ModuleError):
    """No scene object factory is registered for a type tag."""

    def __init__(self, type_tag: Any) -> None:
        super().__init__(f"Unknown scene object type: {type_tag!r}")
        self.type_tag = type_tag


class DuplicateTypeError(ModuleError):
    """A type tag was registered twice."""

    def __init__(self, type_tag: str) -> None:
        super().__init__(f"Scene object type registered twice: {type_tag!r}")
        self.type_tag = type_tag


class UnknownModuleError(ModuleError):
    """A module instance names a module the scene does not define."""

    def __init__(self, module_name: Any) -> None:
        super().__init__(f"Unknown module: {module_name!r}")
        self.module_name = module_name


class ModuleRecursionError(ModuleError):
    """A module expands, directly or through other modules, into itself."""

    def __init__(self, chain: list[str]) -> None:
        super().__init__(
            f"Module {chain[-1]!r} expands into itself: {' -> '.join(map(str, chain))}"
        )
        self.chain = chain


class ControlPointCountError(ModuleError):
    """A placed module instance has the wrong number of control points."""

    def __init__(self, module_name: str, expected: int, actual: int) -> None:
        super().__init__(
            f"Module {module_name!r} needs {expected} control points, got {actual}"
        )
        self.expected = expected
        self.actual = actual
