"""
Register store — named text shared across script runs in one session.

Registers are written by ``cut`` and by auto-salvage when a file block
fails.  Auto-salvaged registers are named ``_saved_1``, ``_saved_2``, …
with a counter that keeps increasing for the lifetime of the store, so
names from earlier runs are never reused.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, Optional

logger = logging.getLogger(__name__)

SAVED_PREFIX = "_saved_"


@dataclass(frozen=True)
class SavedRegister:
    """A register written by auto-salvage."""
    name: str
    size: int

    def __str__(self) -> str:
        return f"{self.name} ({self.size} bytes)"


class RegisterStore:
    """Session-scoped mapping of register name to bytes."""

    def __init__(
        self,
        registers: Optional[dict[str, bytes]] = None,
        next_saved_id: int = 0,
    ) -> None:
        self._registers: dict[str, bytes] = dict(registers or {})
        self.next_saved_id = next_saved_id

    def __contains__(self, name: str) -> bool:
        return name in self._registers

    def __len__(self) -> int:
        return len(self._registers)

    def __iter__(self) -> Iterator[str]:
        return iter(self._registers)

    def get(self, name: str) -> Optional[bytes]:
        return self._registers.get(name)

    def set(self, name: str, text: bytes) -> None:
        self._registers[name] = bytes(text)
        logger.debug("[EDL] Register %s set (%d bytes)", name, len(text))

    def items(self) -> list[tuple[str, bytes]]:
        return list(self._registers.items())

    def save_auto(self, text: bytes) -> SavedRegister:
        """Store *text* under the next free ``_saved_N`` name."""
        self.next_saved_id += 1
        name = f"{SAVED_PREFIX}{self.next_saved_id}"
        while name in self._registers:
            self.next_saved_id += 1
            name = f"{SAVED_PREFIX}{self.next_saved_id}"
        self.set(name, text)
        return SavedRegister(name=name, size=len(text))

    def clear(self) -> None:
        """Drop every register and reset the salvage counter."""
        self._registers.clear()
        self.next_saved_id = 0

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict:
        # surrogateescape keeps non-UTF-8 bytes round-trippable through JSON
        return {
            "registers": {
                name: text.decode("utf-8", errors="surrogateescape")
                for name, text in self._registers.items()
            },
            "next_saved_id": self.next_saved_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "RegisterStore":
        registers = data.get("registers", {})
        if not isinstance(registers, dict):
            raise ValueError("registers must be a mapping")
        return cls(
            {
                str(name): str(text).encode("utf-8", errors="surrogateescape")
                for name, text in registers.items()
            },
            next_saved_id=int(data.get("next_saved_id", 0)),
        )
