"""Template expander — turns JSON-like module templates into concrete data.

Templates are parsed once into a small tree of nodes and then expanded
any number of times against an :class:`ExpansionContext`:

    StringNode       "text `expr` text", or "`expr`" for a typed value
    LiteralNode      numbers, booleans, null
    ObjectNode       mapping of field → node
    ArrayNode        sequence of items
    ForLoopNode      array item with a ``for`` key (and optional ``if``)
    ConditionalNode  array item with only an ``if`` key

``for`` and ``if`` are control keys only inside array items. In any
other object they are ignored, never copied to the output.

Expansion is pure. Failures raise a :class:`ModuleError` subclass at the
leaf; each enclosing level adds a context frame and re-raises the same
exception.
"""

from __future__ import annotations

import itertools
import math
from dataclasses import dataclass
from typing import Any

from rayscene.core.context import ExpansionContext
from rayscene.core.errors import (
    ExpressionError,
    LoopTooLargeError,
    ModuleError,
    TemplateExpansionError,
    describe_bindings,
    describe_fragment,
)
from rayscene.core.expression import evaluate, format_value
from rayscene.core.variable_range import parse_variable_range

CONTROL_KEYS = ("for", "if")


# ── Nodes ──


class TemplateNode:
    """Base class of parsed template nodes."""

    source: Any

    def expand(self, ctx: ExpansionContext) -> Any:
        raise NotImplementedError

    def expand_into(self, out: list, ctx: ExpansionContext) -> None:
        """Append this node's contribution to an enclosing array."""
        out.append(self.expand(ctx))


@dataclass(frozen=True)
class LiteralNode(TemplateNode):
    source: Any

    def expand(self, ctx: ExpansionContext) -> Any:
        return self.source


@dataclass(frozen=True)
class StringNode(TemplateNode):
    """String with back-tick delimited expressions.

    Even-indexed parts are literal text, odd-indexed parts expressions.
    """
    source: str
    parts: tuple[str, ...]

    @classmethod
    def parse(cls, text: str) -> StringNode:
        return cls(source=text, parts=tuple(text.split("`")))

    @property
    def is_single_expression(self) -> bool:
        return len(self.parts) == 3 and self.parts[0] == "" and self.parts[2] == ""

    def expand(self, ctx: ExpansionContext) -> Any:
        try:
            if self.is_single_expression:
                return evaluate(self.parts[1], ctx)
            pieces = []
            for i, part in enumerate(self.parts):
                if i % 2 == 0:
                    pieces.append(part)
                else:
                    pieces.append(format_value(evaluate(part, ctx)))
            return "".join(pieces)
        except ExpressionError as exc:
            err = TemplateExpansionError(self.source, ctx.bindings, exc)
            err.add_context(
                f'error expanding string "{self.source}" with parameters '
                f"{describe_bindings(ctx.bindings)}"
            )
            raise err from exc


@dataclass(frozen=True)
class ObjectNode(TemplateNode):
    source: dict
    fields: tuple[tuple[str, TemplateNode], ...]

    @classmethod
    def parse(cls, obj: dict) -> ObjectNode:
        fields = tuple(
            (key, parse_template(value))
            for key, value in obj.items()
            if key not in CONTROL_KEYS
        )
        return cls(source=obj, fields=fields)

    def expand(self, ctx: ExpansionContext) -> dict:
        result = {}
        for key, node in self.fields:
            try:
                result[key] = node.expand(ctx)
            except ModuleError as err:
                err.add_context(
                    f'error expanding field "{key}" of object '
                    f"{describe_fragment(self.source)}"
                )
                raise
        return result


@dataclass(frozen=True)
class ArrayNode(TemplateNode):
    source: list
    items: tuple[TemplateNode, ...]

    @classmethod
    def parse(cls, arr: list) -> ArrayNode:
        return cls(source=arr, items=tuple(_parse_array_item(item) for item in arr))

    def expand(self, ctx: ExpansionContext) -> list:
        result: list = []
        for item in self.items:
            try:
                item.expand_into(result, ctx)
            except ModuleError as err:
                err.add_context(
                    f"error expanding object {describe_fragment(item.source)} "
                    f"in array with parameters {describe_bindings(ctx.bindings)}"
                )
                raise
        return result


@dataclass(frozen=True)
class ConditionalNode(TemplateNode):
    """Array item included only when ``condition`` is truthy."""
    source: dict
    condition: str
    body: ObjectNode

    def expand(self, ctx: ExpansionContext) -> dict:
        return self.body.expand(ctx)

    def expand_into(self, out: list, ctx: ExpansionContext) -> None:
        if _check_condition(self.condition, ctx):
            out.append(self.body.expand(ctx))


@dataclass(frozen=True)
class ForLoopNode(TemplateNode):
    """Array item repeated over the Cartesian product of loop ranges.

    ``descriptors`` is the raw ``for`` value: one range descriptor or a
    list of them (first descriptor = outermost loop).
    """
    source: dict
    descriptors: Any
    condition: str | None
    body: ObjectNode

    def expand(self, ctx: ExpansionContext) -> list:
        out: list = []
        self.expand_into(out, ctx)
        return out

    def loop_bindings(self, ctx: ExpansionContext) -> list[dict[str, Any]]:
        """Bindings of every loop combination, in iteration order.

        Raises:
            LoopTooLargeError: Before any combination is produced, if a
                single range or the whole product exceeds the cap.
        """
        ranges = [parse_variable_range(d, ctx) for d in self._descriptor_list(ctx)]
        value_lists = [r.values(ctx.max_loop_length) for r in ranges]

        if math.prod(len(values) for values in value_lists) > ctx.max_loop_length:
            raise LoopTooLargeError(None, ctx.max_loop_length)

        names = [r.name for r in ranges]
        return [dict(zip(names, combo)) for combo in itertools.product(*value_lists)]

    def expand_into(self, out: list, ctx: ExpansionContext) -> None:
        for values in self.loop_bindings(ctx):
            loop_ctx = ctx.child(values)
            if self.condition is not None and not _check_condition(self.condition, loop_ctx):
                continue
            out.append(self.body.expand(loop_ctx))

    def _descriptor_list(self, ctx: ExpansionContext) -> list[str]:
        if isinstance(self.descriptors, str):
            return [self.descriptors]
        if isinstance(self.descriptors, list) and all(
            isinstance(d, str) for d in self.descriptors
        ):
            return list(self.descriptors)
        raise TemplateExpansionError(
            self.descriptors, ctx.bindings,
            f'"for" must be a range descriptor or a list of them, '
            f"got {describe_fragment(self.descriptors)}",
        )


# ── Parsing ──


def parse_template(raw: Any) -> TemplateNode:
    """Parse an authored template value (outside array item position)."""
    if isinstance(raw, str):
        return StringNode.parse(raw)
    if isinstance(raw, list):
        return ArrayNode.parse(raw)
    if isinstance(raw, dict):
        return ObjectNode.parse(raw)
    return LiteralNode(raw)


def _parse_array_item(item: Any) -> TemplateNode:
    if isinstance(item, dict):
        if "for" in item:
            return ForLoopNode(
                source=item,
                descriptors=item["for"],
                condition=item.get("if"),
                body=ObjectNode.parse(item),
            )
        if "if" in item:
            return ConditionalNode(
                source=item,
                condition=item["if"],
                body=ObjectNode.parse(item),
            )
    return parse_template(item)


def _check_condition(condition: Any, ctx: ExpansionContext) -> bool:
    if not isinstance(condition, str):
        return bool(condition)
    try:
        return bool(evaluate(condition, ctx))
    except ExpressionError as exc:
        err = TemplateExpansionError(condition, ctx.bindings, exc)
        err.add_context(
            f'error evaluating condition "{condition}" with parameters '
            f"{describe_bindings(ctx.bindings)}"
        )
        raise err from exc


# ── Functional API over raw templates ──


def expand_string(text: str, ctx: ExpansionContext) -> Any:
    """Expand one template string: a typed value or interpolated text."""
    return StringNode.parse(text).expand(ctx)


def expand_object(obj: dict, ctx: ExpansionContext) -> dict:
    """Expand every field of ``obj`` except the ``for``/``if`` control keys."""
    return ObjectNode.parse(obj).expand(ctx)


def expand_array(arr: list, ctx: ExpansionContext) -> list:
    """Expand an array, applying ``for`` loops and ``if`` conditions."""
    return ArrayNode.parse(arr).expand(ctx)
