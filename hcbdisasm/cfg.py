"""Basic block container for a later control-flow graph stage."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Set

from .ir.model import Statement


@dataclass
class BasicBlock:
    """A linear run of statements without internal jumps.

    Only the shape is provided; nothing in the package partitions routines
    into blocks yet.
    """

    start: int
    end: int
    successors: Set[int] = field(default_factory=set)
    statements: List[Statement] = field(default_factory=list)

    def contains(self, address: int) -> bool:
        return self.start <= address < self.end


__all__ = ["BasicBlock"]
