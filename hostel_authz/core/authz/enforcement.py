# hostel_authz/core/authz/enforcement.py

"""
Staged rollout switch for access checks.

off      never block, never log
observe  block only keys on the allow-lists, log the rest when asked to
enforce  block every failed check
"""

from dataclasses import dataclass
from typing import FrozenSet, Iterable

from hostel_authz.core.authz.constants import WILDCARD, AuthzMode, KeyKind
from hostel_authz.core.authz.evaluate import normalize_key, normalize_keys


def parse_mode(value) -> AuthzMode:
    mode = str(value or "").strip().lower()
    try:
        return AuthzMode(mode)
    except ValueError:
        return AuthzMode.OBSERVE


@dataclass(frozen=True)
class EnforcementController:
    mode: AuthzMode = AuthzMode.OBSERVE
    enforced_route_keys: FrozenSet[str] = frozenset()
    enforced_capability_keys: FrozenSet[str] = frozenset()
    log_observe_denies: bool = False

    @classmethod
    def create(
        cls,
        mode=AuthzMode.OBSERVE,
        route_keys: Iterable[str] = (),
        capability_keys: Iterable[str] = (),
        log_observe_denies: bool = False,
    ) -> "EnforcementController":
        return cls(
            mode=parse_mode(mode.value if isinstance(mode, AuthzMode) else mode),
            enforced_route_keys=frozenset(normalize_keys(route_keys)),
            enforced_capability_keys=frozenset(normalize_keys(capability_keys)),
            log_observe_denies=bool(log_observe_denies),
        )

    @classmethod
    def from_settings(cls, settings) -> "EnforcementController":
        return cls.create(
            mode=settings.AUTHZ_MODE,
            route_keys=settings.enforce_route_keys,
            capability_keys=settings.enforce_capability_keys,
            log_observe_denies=settings.AUTHZ_OBSERVE_LOG_DENIES,
        )

    def _allow_list(self, kind: KeyKind) -> FrozenSet[str]:
        if KeyKind(kind) is KeyKind.ROUTE:
            return self.enforced_route_keys
        return self.enforced_capability_keys

    def should_enforce(self, kind: KeyKind, key: str) -> bool:
        """Whether a failed check on `key` blocks the request."""
        if self.mode is AuthzMode.ENFORCE:
            return True
        if self.mode is AuthzMode.OFF:
            return False

        key = normalize_key(key)
        if not key:
            return False
        allowed = self._allow_list(kind)
        return WILDCARD in allowed or key in allowed

    def should_enforce_any(self, kind: KeyKind, keys: Iterable[str]) -> bool:
        """Multi-key checks are enforced as soon as one of their keys is."""
        if self.mode is AuthzMode.ENFORCE:
            return True
        if self.mode is AuthzMode.OFF:
            return False
        return any(self.should_enforce(kind, key) for key in normalize_keys(keys))

    @property
    def logs_denies(self) -> bool:
        return self.log_observe_denies and self.mode is AuthzMode.OBSERVE
