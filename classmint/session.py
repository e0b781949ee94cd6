from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from classmint.models import Role

log = logging.getLogger(__name__)

SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"


@dataclass(frozen=True)
class SessionContext:
    """The authenticated identity a workflow acts on behalf of."""

    user_id: int
    email: str
    role: str | None = None

    @property
    def is_teacher(self) -> bool:
        return self.role == Role.TEACHER


AuthListener = Callable[[str, SessionContext, dict], None]


class AuthEvents:
    """Process-wide registry of auth-state listeners.

    Sign-in and sign-out are the only places identity changes, so everything
    that must react to them (provisioning, audit logging) subscribes here
    instead of polling the session.
    """

    def __init__(self) -> None:
        self._listeners: list[AuthListener] = []

    def subscribe(self, listener: AuthListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def clear(self) -> None:
        self._listeners.clear()

    def emit(self, event: str, context: SessionContext, **details) -> None:
        log.info("auth event %s for user %s", event, context.user_id)
        for listener in list(self._listeners):
            listener(event, context, details)


auth_events = AuthEvents()
