"""Tests for the map listener registry."""

import pytest

from listing_map.subscriptions import EventSubscriptionRegistry
from listing_map.widget import MapEvent, PointerEvent


def noop(event: PointerEvent) -> None:
    pass


@pytest.fixture
def registry() -> EventSubscriptionRegistry:
    return EventSubscriptionRegistry()


class TestAttach:
    def test_one_listener_per_event(self, registry, widget) -> None:
        registry.attach(widget, [(MapEvent.IDLE, noop), (MapEvent.CLICK, noop)])

        assert widget.listener_count(MapEvent.IDLE) == 1
        assert widget.listener_count(MapEvent.CLICK) == 1
        assert registry.active_events == (MapEvent.IDLE, MapEvent.CLICK)

    def test_reattach_unsubscribes_in_reverse_before_subscribing(
        self, registry, widget
    ) -> None:
        registry.attach(widget, [(MapEvent.IDLE, noop), (MapEvent.CLICK, noop)])
        registry.attach(widget, [(MapEvent.IDLE, noop), (MapEvent.CLICK, noop)])

        assert widget.call_log == [
            ("add", MapEvent.IDLE),
            ("add", MapEvent.CLICK),
            ("remove", MapEvent.CLICK),
            ("remove", MapEvent.IDLE),
            ("add", MapEvent.IDLE),
            ("add", MapEvent.CLICK),
        ]
        assert widget.listener_count(MapEvent.IDLE) == 1
        assert widget.listener_count(MapEvent.CLICK) == 1

    def test_attach_to_replacement_widget_detaches_old_one(
        self, registry, widget_factory
    ) -> None:
        old, new = widget_factory(), widget_factory()
        registry.attach(old, [(MapEvent.IDLE, noop), (MapEvent.CLICK, noop)])
        registry.attach(new, [(MapEvent.IDLE, noop), (MapEvent.CLICK, noop)])

        assert old.listener_count() == 0
        assert new.listener_count() == 2
        assert registry.widget is new

    def test_duplicate_events_rejected(self, registry, widget) -> None:
        with pytest.raises(ValueError, match="Duplicate"):
            registry.attach(widget, [(MapEvent.IDLE, noop), (MapEvent.IDLE, noop)])
        assert widget.listener_count() == 0

    def test_repeated_idle_fires_single_handler(self, registry, widget) -> None:
        fired: list[PointerEvent] = []
        for _ in range(3):
            registry.attach(widget, [(MapEvent.IDLE, fired.append)])

        widget.emit(MapEvent.IDLE)

        assert len(fired) == 1


class TestDetach:
    def test_detach_reverse_order(self, registry, widget) -> None:
        registry.attach(widget, [(MapEvent.IDLE, noop), (MapEvent.CLICK, noop)])
        widget.call_log.clear()

        registry.detach()

        assert widget.call_log == [("remove", MapEvent.CLICK), ("remove", MapEvent.IDLE)]
        assert widget.listener_count() == 0
        assert registry.widget is None

    def test_detach_is_idempotent(self, registry, widget) -> None:
        registry.attach(widget, [(MapEvent.IDLE, noop)])
        registry.detach()
        registry.detach()
        assert widget.call_log.count(("remove", MapEvent.IDLE)) == 1

    def test_detach_continues_after_remove_failure(
        self, registry, widget, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        registry.attach(widget, [(MapEvent.IDLE, noop), (MapEvent.CLICK, noop)])
        original_remove = widget.remove_listener
        failed = []

        def flaky_remove(handle):
            if not failed:
                failed.append(handle)
                raise RuntimeError("listener already gone")
            original_remove(handle)

        monkeypatch.setattr(widget, "remove_listener", flaky_remove)
        registry.detach()

        assert registry.active_events == ()
        assert widget.listener_count(MapEvent.IDLE) == 0


class TestRelease:
    def test_release_single_event(self, registry, widget) -> None:
        registry.attach(
            widget,
            [(MapEvent.IDLE, noop), (MapEvent.CLICK, noop), (MapEvent.INIT, noop)],
        )

        assert registry.release(MapEvent.INIT) is True
        assert registry.active_events == (MapEvent.IDLE, MapEvent.CLICK)
        assert widget.listener_count(MapEvent.INIT) == 0

    def test_release_unknown_event(self, registry, widget) -> None:
        registry.attach(widget, [(MapEvent.IDLE, noop)])
        assert registry.release(MapEvent.INIT) is False

    def test_release_when_detached(self, registry) -> None:
        assert registry.release(MapEvent.IDLE) is False
