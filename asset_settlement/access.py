"""Administrator gate and per-component capability table."""

from __future__ import annotations

import logging

from asset_settlement.exceptions import ConfigurationError, Unauthorized
from asset_settlement.runtime import Stateful

logger = logging.getLogger(__name__)


class AdminGate:
    """Identities allowed to perform administrative actions."""

    def __init__(self, administrators: set[str] | frozenset[str]) -> None:
        if not administrators:
            raise ConfigurationError("AdminGate needs at least one administrator")
        self._administrators = frozenset(administrators)

    @property
    def administrators(self) -> frozenset[str]:
        return self._administrators

    def is_admin(self, caller: str) -> bool:
        return caller in self._administrators

    def require(self, caller: str, action: str) -> None:
        if not self.is_admin(caller):
            raise Unauthorized(f"{caller} is not an administrator (required for {action})")


class CapabilityTable(Stateful):
    """Component -> set of caller identities permitted to invoke it.

    Mutated only through :meth:`set`, which components expose behind
    an administrator check.
    """

    _state_fields = ("_grants",)

    def __init__(self, grants: dict[str, set[str]] | None = None) -> None:
        self._grants: dict[str, set[str]] = {k: set(v) for k, v in (grants or {}).items()}

    def set(self, component: str, caller: str, enabled: bool) -> bool:
        """Set a permission; returns whether it changed."""
        permitted = self._grants.setdefault(component, set())
        before = caller in permitted
        if enabled:
            permitted.add(caller)
        else:
            permitted.discard(caller)
        changed = before != enabled
        if changed:
            logger.info("Capability %s for %s -> %s", component, caller, enabled)
        return changed

    def is_permitted(self, component: str, caller: str) -> bool:
        return caller in self._grants.get(component, set())

    def permitted(self, component: str) -> frozenset[str]:
        return frozenset(self._grants.get(component, set()))
