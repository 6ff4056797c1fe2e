"""Transport interfaces."""

from __future__ import annotations

from typing import Protocol


class Transport(Protocol):
    async def send(self, payload: bytes) -> None:
        """Write one feature report to the claimed interface."""

    async def receive(self, length: int) -> bytes:
        """Read one feature report of ``length`` bytes."""

    async def drain(self, length: int) -> None:
        """Consume a pending response left behind by an abandoned request."""

    def close(self) -> None:
        """Release the claimed interface."""
