"""Disposable subscriptions and ordered fan-out.

Subscriptions hold no reference to their registrar. Disposal only flips
local state; registries skip and lazily prune disposed entries.
"""

from __future__ import annotations

from typing import Any, Callable, Iterator

Callback = Callable[..., Any]


class Subscription:
    """Callback registration that can be disposed."""

    def __init__(self, callback: Callback, context: Any = None) -> None:
        """Create a subscription.

        Args:
            callback: Callable invoked on every notification.
            context: Optional object passed as the first positional
                argument, so unbound methods can be registered.
        """
        self.callback = callback
        self.context = context
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def dispose(self) -> None:
        """Stop listening to changes."""
        self._disposed = True

    def trigger(self, *args: Any) -> None:
        """Invoke the callback unless disposed."""
        if self._disposed:
            return
        if self.context is None:
            self.callback(*args)
        else:
            self.callback(self.context, *args)


class SubscriptionRegistry:
    """Ordered collection of subscriptions."""

    def __init__(self) -> None:
        self._subscriptions: list[Subscription] = []

    def add(self, callback: Callback, context: Any = None) -> Subscription:
        """Register a callback and return its subscription."""
        subscription = Subscription(callback, context)
        self._subscriptions.append(subscription)
        return subscription

    def notify(self, *args: Any) -> None:
        """Trigger active subscriptions in registration order.

        Subscriptions disposed during fan-out are skipped; subscriptions
        added during fan-out first receive the next notification.
        """
        self._subscriptions = [sub for sub in self._subscriptions if not sub.disposed]
        for subscription in list(self._subscriptions):
            subscription.trigger(*args)

    def dispose_all(self) -> None:
        """Dispose every registered subscription."""
        for subscription in self._subscriptions:
            subscription.dispose()
        self._subscriptions = []

    def __iter__(self) -> Iterator[Subscription]:
        return (sub for sub in self._subscriptions if not sub.disposed)

    def __len__(self) -> int:
        return sum(1 for _ in self)
