"""Event listener protocol — receives committed engine events."""
from typing import Protocol

from ..models import EngineEvent


class EventListener(Protocol):
    async def on_event(self, event: EngineEvent) -> None: ...
