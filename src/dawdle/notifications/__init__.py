"""Notification sub-package — delivery of ``dawdle`` signals."""

from dawdle.notifications.handlers import (
    CallbackHandler,
    DispatchResult,
    SignalDispatcher,
    SignalHandler,
    create_dispatcher,
)

__all__ = [
    "CallbackHandler",
    "DispatchResult",
    "SignalDispatcher",
    "SignalHandler",
    "create_dispatcher",
]
