"""Call frames of the virtual machine."""

from __future__ import annotations

from dataclasses import dataclass, field

from monkeylang.objects import Closure


@dataclass(eq=False)
class Frame:
    """One active function call: the closure, its instruction pointer and stack base."""

    closure: Closure
    base_pointer: int
    ip: int = field(default=-1, init=False)

    @property
    def instructions(self) -> bytes:
        """The bytecode of the function being executed."""
        return self.closure.fn.instructions