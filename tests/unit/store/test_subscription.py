"""Unit tests for disposable subscriptions."""

from __future__ import annotations

from store.subscription import Subscription, SubscriptionRegistry


def test_disposed_subscription_is_never_triggered() -> None:
    """Dispose should stop further callbacks."""
    calls: list[str] = []
    subscription = Subscription(lambda value: calls.append(value))

    subscription.trigger("first")
    subscription.dispose()
    subscription.trigger("second")

    assert calls == ["first"] and subscription.disposed


def test_context_is_passed_as_first_argument() -> None:
    """A context should bind like ``self`` for unbound methods."""

    class _Listener:
        def __init__(self) -> None:
            self.seen: list[str] = []

        def on_change(self, value: str) -> None:
            self.seen.append(value)

    listener = _Listener()
    Subscription(_Listener.on_change, listener).trigger("load")

    assert listener.seen == ["load"]


def test_registry_notifies_in_registration_order() -> None:
    """Fan-out should follow subscription order."""
    registry = SubscriptionRegistry()
    order: list[str] = []
    for name in ("A", "B", "C"):
        registry.add(lambda event, name=name: order.append(name))

    registry.notify("load")

    assert order == ["A", "B", "C"]


def test_registry_skips_subscription_disposed_during_fan_out() -> None:
    """Disposing a later subscription mid-dispatch should skip it."""
    registry = SubscriptionRegistry()
    order: list[str] = []
    holder: dict[str, Subscription] = {}
    registry.add(lambda event: (order.append("A"), holder["B"].dispose()))
    holder["B"] = registry.add(lambda event: order.append("B"))
    registry.add(lambda event: order.append("C"))

    registry.notify("load")

    assert order == ["A", "C"] and len(registry) == 2


def test_registry_tolerates_self_disposal() -> None:
    """A subscription may dispose itself while being notified."""
    registry = SubscriptionRegistry()
    calls: list[str] = []
    holder: dict[str, Subscription] = {}

    def _once(event: str) -> None:
        calls.append(event)
        holder["self"].dispose()

    holder["self"] = registry.add(_once)
    registry.notify("first")
    registry.notify("second")

    assert calls == ["first"]


def test_registry_defers_subscriptions_added_during_fan_out() -> None:
    """Subscriptions added mid-dispatch start with the next notification."""
    registry = SubscriptionRegistry()
    late_calls: list[str] = []
    registry.add(lambda event: registry.add(lambda inner: late_calls.append(inner)) if event == "first" else None)

    registry.notify("first")
    registry.notify("second")

    assert late_calls == ["second"]


def test_dispose_all_clears_registry() -> None:
    """dispose_all should dispose and drop every subscription."""
    registry = SubscriptionRegistry()
    subscription = registry.add(lambda event: None)

    registry.dispose_all()

    assert subscription.disposed and len(registry) == 0
