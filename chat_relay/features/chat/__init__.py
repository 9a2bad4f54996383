"""Chat routing core: color palette, presence registry and event routers.

Usage:
    from chat_relay.features.chat import ChatEvent, ChatRelay

    relay = ChatRelay.create()
    routed = relay.message_router.route(ChatEvent(sender="alice", type="NEW_USER"))
    routed.topic          # "chat"
    routed.event.color    # one of relay.palette.colors
"""

from chat_relay.features.chat.dispatch import MessageRouter, TypingRouter, now_millis
from chat_relay.features.chat.palette import DEFAULT_COLORS, ColorPalette
from chat_relay.features.chat.presence import PresenceRegistry
from chat_relay.features.chat.relay import ChatRelay
from chat_relay.features.chat.schemas import ChatEvent, EventKind, RoutedEvent

__all__ = [
    "DEFAULT_COLORS",
    "ChatEvent",
    "ChatRelay",
    "ColorPalette",
    "EventKind",
    "MessageRouter",
    "PresenceRegistry",
    "RoutedEvent",
    "TypingRouter",
    "now_millis",
]
