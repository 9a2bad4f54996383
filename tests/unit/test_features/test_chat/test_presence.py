"""Unit tests for the presence registry."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest

from chat_relay.features.chat.palette import DEFAULT_COLORS, ColorPalette
from chat_relay.features.chat.presence import PresenceRegistry


@pytest.fixture
def registry(rng) -> PresenceRegistry:
    return PresenceRegistry(ColorPalette(rng=rng))


class TestPresenceRegistry:
    def test_register_assigns_palette_color(self, registry: PresenceRegistry) -> None:
        color = registry.register("alice")

        assert color == DEFAULT_COLORS[0]
        assert registry.lookup("alice") == color
        assert registry.size() == 1

    def test_register_again_replaces_color(self, registry: PresenceRegistry) -> None:
        first = registry.register("alice")
        second = registry.register("alice")

        assert first != second
        assert registry.lookup("alice") == second
        assert registry.size() == 1

    def test_lookup_unknown_sender(self, registry: PresenceRegistry) -> None:
        assert registry.lookup("nobody") is None

    def test_remove_returns_color(self, registry: PresenceRegistry) -> None:
        color = registry.register("alice")

        assert registry.remove("alice") == color
        assert registry.lookup("alice") is None
        assert registry.size() == 0

    def test_remove_unknown_sender(self, registry: PresenceRegistry) -> None:
        registry.register("alice")

        assert registry.remove("bob") is None
        assert registry.size() == 1

    def test_empty_sender_is_a_key(self, registry: PresenceRegistry) -> None:
        color = registry.register("")

        assert registry.lookup("") == color

    def test_snapshot_is_a_copy(self, registry: PresenceRegistry) -> None:
        registry.register("alice")
        snapshot = registry.snapshot()
        snapshot["mallory"] = "#000000"

        assert registry.lookup("mallory") is None
        assert set(registry.snapshot()) == {"alice"}

    def test_concurrent_register_and_remove(self) -> None:
        """Parallel joins and leaves never corrupt the mapping."""
        registry = PresenceRegistry(ColorPalette())
        senders = [f"user-{i}" for i in range(200)]

        with ThreadPoolExecutor(max_workers=16) as pool:
            list(pool.map(registry.register, senders))

        assert registry.size() == len(senders)
        assert all(registry.lookup(s) in DEFAULT_COLORS for s in senders)

        with ThreadPoolExecutor(max_workers=16) as pool:
            removed = list(pool.map(registry.remove, senders[:100]))

        assert all(color is not None for color in removed)
        assert registry.size() == 100
        assert registry.lookup("user-0") is None
        assert registry.lookup("user-199") is not None

    def test_concurrent_remove_of_same_sender_returns_color_once(self) -> None:
        registry = PresenceRegistry(ColorPalette())
        registry.register("alice")

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(registry.remove, ["alice"] * 32))

        assert sum(r is not None for r in results) == 1
