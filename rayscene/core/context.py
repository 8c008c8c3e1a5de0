"""Expansion context — everything one expansion pass can see.

Threaded explicitly through every expansion call. Bindings are layered:
each nested scope (loop combination, derived ``vars``) gets a new
``ChainMap`` child, and no layer is ever mutated after creation.
"""

from __future__ import annotations

from collections import ChainMap
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any

import numpy as np

from rayscene.constants import DEFAULT_MAX_LOOP_LENGTH


@dataclass(frozen=True)
class ExpansionContext:
    """Bindings, loop cap and random stream for one expansion pass.

    Attributes:
        bindings: Variable name → value, innermost scope first.
        max_loop_length: Cap on any single loop range and on the total
            Cartesian product of a ``for`` element.
        rng: Random stream backing ``random()`` in expressions. Draws
            happen in template-evaluation order. None disables ``random()``.
    """
    bindings: ChainMap = field(default_factory=ChainMap)
    max_loop_length: int = DEFAULT_MAX_LOOP_LENGTH
    rng: np.random.Generator | None = None

    @classmethod
    def root(
        cls,
        bindings: Mapping[str, Any] | None = None,
        max_loop_length: int = DEFAULT_MAX_LOOP_LENGTH,
        rng: np.random.Generator | None = None,
    ) -> ExpansionContext:
        return cls(
            bindings=ChainMap(dict(bindings or {})),
            max_loop_length=max_loop_length,
            rng=rng,
        )

    def child(self, values: Mapping[str, Any]) -> ExpansionContext:
        """New context with ``values`` layered over the current bindings."""
        return replace(self, bindings=self.bindings.new_child(dict(values)))
