"""Chat front ends for the tracker.

Every transport turns incoming chat text into an IncomingMessage, hands it
to the handler registered by main.py (which runs commands.dispatch), and
sends the returned replies back in order. Checklists, stats and the
all-done celebration are already rendered text by the time they get here.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class IncomingMessage:
    """One chat message from the owner: a /command or a bare habit name."""
    user_id: int
    channel_id: int
    text: str
    transport: str


class Transport(ABC):
    """Delivers chat text to the command pipeline and replies back.

    Owner gating happens here; habit rules live in commands / tracker.
    """

    @abstractmethod
    async def start(self) -> None:
        """Begin receiving messages."""
        ...

    @abstractmethod
    async def stop(self) -> None:
        ...

    @abstractmethod
    async def send_message(self, user_id: int, text: str) -> None:
        """Send one reply; long texts may be split by the transport."""
        ...

    @property
    @abstractmethod
    def name(self) -> str:
        ...
