"""Optional routine naming table loaded from JSON."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Mapping, Optional

logger = logging.getLogger(__name__)


class SymbolTable:
    """Map routine addresses to human readable names.

    The file is a JSON object whose keys are addresses written either in
    hexadecimal (``"0x1A2B"``) or decimal, and whose values are names.  Entries
    with unparsable keys or non-string values are skipped.
    """

    def __init__(self, names: Optional[Mapping[int, str]] = None) -> None:
        self._names: Dict[int, str] = {int(address): name for address, name in (names or {}).items()}

    @classmethod
    def load(cls, path: Optional[Path]) -> "SymbolTable":
        if path is None or not path.exists():
            return cls()

        data = json.loads(path.read_text("utf-8"))
        if not isinstance(data, Mapping):
            raise ValueError("symbol file must contain a JSON object")

        names: Dict[int, str] = {}
        for key, value in data.items():
            if not isinstance(value, str):
                continue
            try:
                address = int(str(key), 0)
            except ValueError:
                logger.warning("ignoring symbol with invalid address %r", key)
                continue
            names[address] = value
        return cls(names)

    def __len__(self) -> int:
        return len(self._names)

    def lookup(self, address: int) -> Optional[str]:
        return self._names.get(address)

    def name_for(self, address: int, *, entry_point: Optional[int] = None) -> str:
        name = self._names.get(address)
        if name:
            return name
        if entry_point is not None and address == entry_point:
            return "main"
        return f"routine_{address:08X}"


__all__ = ["SymbolTable"]
