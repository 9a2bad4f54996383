"""Construction of the chat routing graph."""

from __future__ import annotations

from dataclasses import dataclass
import random
from typing import TYPE_CHECKING

from chat_relay.features.chat.dispatch import Clock, MessageRouter, TypingRouter, now_millis
from chat_relay.features.chat.palette import ColorPalette
from chat_relay.features.chat.presence import PresenceRegistry

if TYPE_CHECKING:
    from chat_relay.core.settings import ChatSettings
    from chat_relay.features.chat.palette import RandomSource


@dataclass(frozen=True)
class ChatRelay:
    """Palette, registry and both routers, sharing one PresenceRegistry.

    Built once per application (see the lifespan) and handed to the
    WebSocket endpoint; tests build their own.
    """

    palette: ColorPalette
    registry: PresenceRegistry
    message_router: MessageRouter
    typing_router: TypingRouter

    @classmethod
    def create(
        cls,
        settings: ChatSettings | None = None,
        rng: RandomSource | None = None,
        clock: Clock = now_millis,
    ) -> ChatRelay:
        """Wire a fresh relay.

        Args:
            settings: Topic names and optional palette seed. Defaults to the
                cached ChatSettings.
            rng: Random source override; takes precedence over the seed.
            clock: Millisecond clock used to stamp events.
        """
        if settings is None:
            from chat_relay.core.settings import get_chat_settings

            settings = get_chat_settings()

        if rng is None and settings.palette_seed is not None:
            rng = random.Random(settings.palette_seed)

        palette = ColorPalette(rng=rng)
        registry = PresenceRegistry(palette)
        return cls(
            palette=palette,
            registry=registry,
            message_router=MessageRouter(registry, topic=settings.chat_topic, clock=clock),
            typing_router=TypingRouter(
                registry, palette, topic=settings.typing_topic, clock=clock,
            ),
        )
