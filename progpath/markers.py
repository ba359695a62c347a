"""Marker/QR command source contract.

Camera capture and QR decoding happen outside the core. Whatever decodes a
code hands the raw payload text to ``MarkerFeed.on_payload``; the feed maps
it to a ``Command``, drops repeats of the same marker inside the cooldown
window, and forwards the rest to ``on_detected``.
"""

from __future__ import annotations

import time
from typing import Callable, Dict, Optional

from .config import Config
from .schemas import Command, CommandType


# Payload text printed on each physical card.
MARKER_COMMANDS: Dict[str, CommandType] = {
    "forward": CommandType.FORWARD,
    "turnRight": CommandType.TURN_RIGHT,
    "turnLeft": CommandType.TURN_LEFT,
    "ifHole": CommandType.IF_HOLE,
    "loop": CommandType.LOOP,
}


class MarkerPayloadError(ValueError):
    """Raised by the strict parser for payloads that name no command."""

    def __init__(self, payload: str) -> None:
        self.payload = payload
        known = ", ".join(MARKER_COMMANDS)
        super().__init__(f"Unknown marker payload {payload!r}; expected one of: {known}")


def parse_marker_payload(payload: str, *, strict: bool = False) -> Optional[Command]:
    """Map decoded QR text to a command.

    Unknown payloads return None (cameras routinely see unrelated codes), or
    raise MarkerPayloadError when ``strict`` is set.
    """

    command_type = MARKER_COMMANDS.get(payload.strip())
    if command_type is None:
        if strict:
            raise MarkerPayloadError(payload)
        return None
    return Command(type=command_type)


class MarkerDebouncer:
    """Per-payload cooldown so one card held in view triggers once."""

    def __init__(self, cooldown: Optional[float] = None) -> None:
        self.cooldown = Config.MARKER_COOLDOWN_SECONDS if cooldown is None else cooldown
        self._last_seen: Dict[str, float] = {}

    def accept(self, payload: str, now: float) -> bool:
        last = self._last_seen.get(payload)
        if last is not None and now - last < self.cooldown:
            return False
        self._last_seen[payload] = now
        return True

    def reset(self) -> None:
        self._last_seen.clear()


class MarkerFeed:
    """Glue between a decoder's raw payloads and the ingestion adapter."""

    def __init__(
        self,
        on_detected: Callable[[Command], object],
        *,
        debouncer: Optional[MarkerDebouncer] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.on_detected = on_detected
        self.debouncer = debouncer or MarkerDebouncer()
        self._clock = clock

    def on_payload(self, payload: str) -> Optional[Command]:
        """Handle one decoded payload; return the forwarded command, if any."""
        command = parse_marker_payload(payload)
        if command is None:
            return None
        if not self.debouncer.accept(payload.strip(), self._clock()):
            return None
        self.on_detected(command)
        return command
