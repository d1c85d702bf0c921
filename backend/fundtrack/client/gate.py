"""Access gate shown before the tracker.

The gate is a convenience lock, not a security boundary: when the device
cannot be probed it opens rather than trapping the user. Only the manual
login path is checked by the server.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from fundtrack.client.capability import AuthMethod, Device, probe_capability
from fundtrack.client.strategies import AuthOutcome, AuthResult, AuthStrategy
from fundtrack.core.errors import CapabilityError

log = logging.getLogger(__name__)


class GateState(str, Enum):
    CHECKING = "checking"
    NOT_REGISTERED = "not-registered"
    LOCKED = "locked"
    MANUAL_LOGIN = "manual-login-required"
    UNLOCKED = "unlocked"


class InvalidTransition(Exception):
    def __init__(self, action: str, state: GateState):
        super().__init__(f"{action} is not available while the gate is {state.value}")
        self.action = action
        self.state = state


@dataclass(frozen=True)
class Notice:
    level: str  # success|info|warning|error
    message: str


class AccessGate:
    def __init__(self, strategy_factory: Callable[[AuthMethod], AuthStrategy]):
        self._factory = strategy_factory
        self.state = GateState.CHECKING
        self.method: AuthMethod | None = None
        self.strategy: AuthStrategy | None = None
        self.notices: list[Notice] = []

    def _notify(self, level: str, message: str) -> None:
        self.notices.append(Notice(level, message))

    def _move(self, new: GateState) -> None:
        if new is not self.state:
            log.info("gate %s -> %s", self.state.value, new.value)
        self.state = new

    def _require(self, action: str, *allowed: GateState) -> AuthStrategy:
        if self.state not in allowed or self.strategy is None:
            raise InvalidTransition(action, self.state)
        return self.strategy

    def start(self, device: Device) -> GateState:
        if self.state is not GateState.CHECKING:
            raise InvalidTransition("start", self.state)
        try:
            self.method = probe_capability(device)
            self.strategy = self._factory(self.method)
        except CapabilityError as e:
            self._notify("warning", e.message)
            self._move(GateState.UNLOCKED)
            return self.state

        enrolled = self.strategy.is_enrolled()
        if self.method is AuthMethod.PLATFORM_CREDENTIAL:
            self._move(GateState.LOCKED if enrolled else GateState.NOT_REGISTERED)
        else:
            self._move(GateState.UNLOCKED if enrolled else GateState.MANUAL_LOGIN)
        return self.state

    def _report(self, result: AuthResult) -> None:
        if result.ok:
            self._notify("success", result.message)
        elif result.outcome is AuthOutcome.NO_CREDENTIAL:
            self._notify("warning", result.message)
        else:
            self._notify("error", result.message)

    def register(self) -> AuthResult:
        strategy = self._require("register", GateState.NOT_REGISTERED)
        result = strategy.register()
        self._report(result)
        if result.ok:
            self._move(GateState.UNLOCKED)
        return result

    def unlock(self) -> AuthResult:
        strategy = self._require("unlock", GateState.LOCKED)
        result = strategy.unlock()
        self._report(result)
        if result.ok:
            self._move(GateState.UNLOCKED)
        elif result.outcome is AuthOutcome.NO_CREDENTIAL:
            self._move(GateState.NOT_REGISTERED)
        return result

    def login(self, username: str | None = None, password: str | None = None) -> AuthResult:
        strategy = self._require("login", GateState.MANUAL_LOGIN)
        result = strategy.unlock(username, password)
        self._report(result)
        if result.ok:
            self._move(GateState.UNLOCKED)
        return result

    def reset(self) -> None:
        """Forget the registered passkey so it can be set up again."""
        strategy = self._require("reset", GateState.LOCKED)
        strategy.reset()
        self._notify("info", "Passkey removed, please re-register.")
        self._move(GateState.NOT_REGISTERED)

    def dismiss(self, notice: Notice | None = None) -> None:
        if notice is None:
            self.notices.clear()
        elif notice in self.notices:
            self.notices.remove(notice)
