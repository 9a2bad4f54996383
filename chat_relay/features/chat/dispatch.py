"""Per-event routing for the chat and typing topics.

Both routers are stateless: every call stamps the server time, resolves the
display color, and returns a new outgoing event together with its topic. The
only shared state is the injected PresenceRegistry.

Chat topic:

    | kind      | registry            | color                        | text                         |
    |-----------|---------------------|------------------------------|------------------------------|
    | NEW_USER  | register            | newly assigned               | "<sender> se ha unido al chat" |
    | MESSAGE   | lookup              | stored, else client value    | unchanged                    |
    | USER_LEFT | remove (atomic)     | removed, else client value   | "<sender> ha dejado el chat" |
    | other     | -                   | unchanged                    | unchanged                    |

Typing topic: color is the stored one, else an ephemeral palette pick that is
never written back. The registry is never mutated.
"""

from __future__ import annotations

from collections.abc import Callable
import logging
import time
from typing import TYPE_CHECKING

from chat_relay.features.chat.schemas import ChatEvent, EventKind, RoutedEvent

if TYPE_CHECKING:
    from chat_relay.features.chat.palette import ColorPalette
    from chat_relay.features.chat.presence import PresenceRegistry

logger = logging.getLogger(__name__)

Clock = Callable[[], int]

JOIN_TEMPLATE = "{sender} se ha unido al chat"
LEAVE_TEMPLATE = "{sender} ha dejado el chat"


def now_millis() -> int:
    """Current wall-clock time in milliseconds since epoch."""
    return time.time_ns() // 1_000_000


class MessageRouter:
    """Route join, leave and message events to the chat topic."""

    def __init__(
        self,
        registry: PresenceRegistry,
        topic: str = "chat",
        clock: Clock = now_millis,
    ) -> None:
        self._registry = registry
        self._topic = topic
        self._clock = clock

    @property
    def topic(self) -> str:
        return self._topic

    def route(self, event: ChatEvent) -> RoutedEvent:
        """Enrich ``event`` for broadcast; never raises for any well-typed event."""
        stamped = event.model_copy(update={"timestamp": self._clock()})
        kind = stamped.kind
        sender = stamped.sender_key

        if kind is EventKind.NEW_USER:
            color = self._registry.register(sender)
            outgoing = stamped.model_copy(
                update={"color": color, "text": JOIN_TEMPLATE.format(sender=sender)},
            )
            logger.info(
                "User joined chat",
                extra={
                    "sender": sender,
                    "color": color,
                    "active_users": self._registry.size(),
                },
            )

        elif kind is EventKind.MESSAGE:
            color = self._registry.lookup(sender)
            outgoing = stamped if color is None else stamped.model_copy(update={"color": color})
            logger.debug("Chat message relayed", extra={"sender": sender})

        elif kind is EventKind.USER_LEFT:
            # Single atomic remove so a concurrent NEW_USER cannot slip in between
            color = self._registry.remove(sender)
            update: dict[str, object] = {"text": LEAVE_TEMPLATE.format(sender=sender)}
            if color is not None:
                update["color"] = color
            outgoing = stamped.model_copy(update=update)
            logger.info(
                "User left chat",
                extra={
                    "sender": sender,
                    "was_registered": color is not None,
                    "active_users": self._registry.size(),
                },
            )

        else:
            outgoing = stamped
            logger.warning(
                "Unknown chat event type relayed unchanged",
                extra={"sender": sender, "event_type": stamped.type},
            )

        return RoutedEvent(self._topic, outgoing)


class TypingRouter:
    """Route typing start/stop events to the typing topic."""

    def __init__(
        self,
        registry: PresenceRegistry,
        palette: ColorPalette,
        topic: str = "typing",
        clock: Clock = now_millis,
    ) -> None:
        self._registry = registry
        self._palette = palette
        self._topic = topic
        self._clock = clock

    @property
    def topic(self) -> str:
        return self._topic

    def route(self, event: ChatEvent) -> RoutedEvent:
        """Stamp and color ``event``; unregistered senders get a throwaway color."""
        sender = event.sender_key
        color = self._registry.lookup(sender)
        if color is None:
            color = self._palette.pick()

        outgoing = event.model_copy(update={"timestamp": self._clock(), "color": color})

        kind = outgoing.kind
        if kind is EventKind.TYPING_START:
            logger.debug("User started typing", extra={"sender": sender})
        elif kind is EventKind.TYPING_STOP:
            logger.debug("User stopped typing", extra={"sender": sender})
        else:
            logger.warning(
                "Unknown typing event type relayed",
                extra={"sender": sender, "event_type": outgoing.type},
            )

        return RoutedEvent(self._topic, outgoing)
