"""Module definition — reusable, parameterized blueprint for a sub-scene.

Authored as JSON inside the scene file::

    {
        "numPoints": 2,
        "params": ["n=1:1:10:3"],
        "vars": {"dx": "`(x_2-x_1)/n`"},
        "objs": [{"for": "i=0:1:n-1", "type": "Blocker", ...}],
        "maxLoopLength": 1000
    }

Templates are parsed once here and shared, read-only, by every module
instance referencing the definition.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from rayscene.constants import DEFAULT_MAX_LOOP_LENGTH
from rayscene.core.context import ExpansionContext
from rayscene.core.template import ArrayNode, ObjectNode
from rayscene.core.variable_range import VariableRange, parse_variable_range


@dataclass
class ModuleDefinition:
    """Blueprint of a module.

    Attributes:
        num_points: Number of control points an instance is placed with.
        params: Range descriptors of the user-adjustable parameters.
        vars: Template of derived variables, expanded before ``objs``.
        objs: Templates of the scene objects the module expands to.
        max_loop_length: Cap on loop and Cartesian product sizes.
    """
    num_points: int = 0
    params: list[str] = field(default_factory=list)
    vars: dict[str, Any] = field(default_factory=dict)
    objs: list[Any] = field(default_factory=list)
    max_loop_length: int = DEFAULT_MAX_LOOP_LENGTH

    def __post_init__(self) -> None:
        self.vars_template = ObjectNode.parse(self.vars or {})
        self.objs_template = ArrayNode.parse(self.objs or [])

    @classmethod
    def from_dict(cls, data: dict) -> ModuleDefinition:
        """Build from the authoring format (``numPoints``, ``maxLoopLength``...)."""
        return cls(
            num_points=int(data.get("numPoints", 0)),
            params=list(data.get("params", [])),
            vars=dict(data.get("vars") or {}),
            objs=list(data.get("objs", [])),
            max_loop_length=int(data.get("maxLoopLength") or DEFAULT_MAX_LOOP_LENGTH),
        )

    def to_dict(self) -> dict:
        d: dict[str, Any] = {
            "numPoints": self.num_points,
            "params": list(self.params),
        }
        if self.vars:
            d["vars"] = self.vars
        d["objs"] = self.objs
        if self.max_loop_length != DEFAULT_MAX_LOOP_LENGTH:
            d["maxLoopLength"] = self.max_loop_length
        return d

    def param_ranges(self) -> list[VariableRange]:
        """Parse every parameter descriptor against an empty context.

        Raises:
            RangeParseError: If a descriptor is malformed.
        """
        ctx = ExpansionContext.root(max_loop_length=self.max_loop_length)
        return [parse_variable_range(p, ctx) for p in self.params]

    def param_names(self) -> list[str]:
        return [r.name for r in self.param_ranges()]

    def default_params(self) -> dict[str, float]:
        """Parameter name → default value."""
        return {r.name: r.default for r in self.param_ranges()}

    def validate(self) -> None:
        """Check the definition invariants.

        Raises:
            ValueError: If ``num_points`` is negative.
            RangeParseError: If a parameter descriptor does not parse.
        """
        if self.num_points < 0:
            raise ValueError(f"numPoints must be >= 0, got {self.num_points}")
        if self.max_loop_length < 1:
            raise ValueError(f"maxLoopLength must be >= 1, got {self.max_loop_length}")
        self.param_ranges()
