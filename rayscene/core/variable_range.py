"""Variable range descriptors — ``"name=start:step:end[:default]"``.

Used both for module parameters (slider range + default value) and for
``for`` loop variables in templates. Every field is itself an expression,
so ranges may depend on parameters or enclosing loop variables.
"""

from __future__ import annotations

from dataclasses import dataclass

from rayscene.core.context import ExpansionContext
from rayscene.core.errors import ExpressionError, LoopTooLargeError, RangeParseError
from rayscene.core.expression import evaluate


@dataclass(frozen=True)
class VariableRange:
    """A parsed parameter or loop-variable range.

    Attributes:
        name: Variable name.
        start: First value (inclusive).
        step: Increment between values. Must be non-zero to iterate.
        end: Upper bound (inclusive).
        default: Initial parameter value; equals ``start`` when omitted.
    """
    name: str
    start: float
    step: float
    end: float
    default: float

    @property
    def length(self) -> float:
        """Nominal element count ``(end - start) / step + 1``."""
        return (self.end - self.start) / self.step + 1

    def values(self, max_length: int) -> list[float]:
        """Inclusive float-stepped values ``start, start + step, ... <= end``.

        The last value is the largest one not exceeding ``end``; a step
        that does not divide the span evenly is not an error.

        Raises:
            LoopTooLargeError: If ``step`` is zero, the nominal length
                exceeds ``max_length``, or stepping never reaches ``end``.
        """
        if self.step == 0 or self.length > max_length:
            raise LoopTooLargeError(self.name, max_length)

        result: list[float] = []
        value = self.start
        while value <= self.end:
            if len(result) >= max_length:
                raise LoopTooLargeError(self.name, max_length)
            result.append(value)
            value += self.step
        return result


def parse_variable_range(text: str, ctx: ExpansionContext) -> VariableRange:
    """Parse a range descriptor, evaluating each field against ``ctx``.

    Args:
        text: ``"name=start:step:end"`` or ``"name=start:step:end:default"``.
        ctx: Bindings available to the field expressions.

    Raises:
        RangeParseError: Missing ``=``, wrong number of fields, empty
            name, non-numeric field, or a failing field expression.
    """
    if not isinstance(text, str):
        raise RangeParseError(str(text), ctx.bindings, "descriptor is not a string")

    name, sep, rhs = text.partition("=")
    name = name.strip()
    if not sep:
        raise RangeParseError(text, ctx.bindings, "missing '='")
    if not name:
        raise RangeParseError(text, ctx.bindings, "missing variable name")

    fields = rhs.split(":")
    if len(fields) not in (3, 4):
        raise RangeParseError(
            text, ctx.bindings,
            f"expected start:step:end[:default], got {len(fields)} field(s)",
        )

    values = []
    for field_expr in fields:
        try:
            value = evaluate(field_expr, ctx)
        except ExpressionError as exc:
            raise RangeParseError(text, ctx.bindings, exc) from exc
        if not isinstance(value, (int, float)):
            raise RangeParseError(
                text, ctx.bindings, f"{field_expr!r} is not a number",
            )
        values.append(value)

    start, step, end = values[:3]
    default = values[3] if len(values) == 4 else start
    return VariableRange(name=name, start=start, step=step, end=end, default=default)
