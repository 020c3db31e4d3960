# hostel_authz/core/authz/access.py

"""
Request-time access decisions.

Everything here is a plain function of (principal, keys, enforcement) so it
can be exercised without an HTTP stack; core/rbac.py turns the decision into
a FastAPI dependency.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Tuple

from hostel_authz.core.authz.constants import KeyKind
from hostel_authz.core.authz.enforcement import EnforcementController
from hostel_authz.core.authz.evaluate import (
    can_all_capabilities,
    can_any_capability,
    can_capability,
    can_route,
    normalize_keys,
)
from hostel_authz.schemas.session import SessionUser


class AccessDecision(str, Enum):
    ALLOW = "allow"
    OBSERVE_ALLOW = "observe-allow"
    DENY = "deny"
    UNAUTHENTICATED = "unauthenticated"


class Match(str, Enum):
    ONE = "one"
    ANY = "any"
    ALL = "all"


# label used in the deny-preview log line
CHECK_TYPES = {
    (KeyKind.ROUTE, Match.ONE): "route",
    (KeyKind.CAPABILITY, Match.ONE): "capability",
    (KeyKind.CAPABILITY, Match.ANY): "any-capability",
    (KeyKind.CAPABILITY, Match.ALL): "all-capability",
}


@dataclass(frozen=True)
class AccessCheck:
    kind: KeyKind
    keys: Tuple[str, ...]
    match: Match = Match.ONE

    @classmethod
    def route(cls, route_key: str) -> "AccessCheck":
        return cls(KeyKind.ROUTE, tuple(normalize_keys([route_key])) or ("",))

    @classmethod
    def capability(cls, capability_key: str) -> "AccessCheck":
        return cls(KeyKind.CAPABILITY, tuple(normalize_keys([capability_key])))

    @classmethod
    def any_capability(cls, capability_keys: Optional[Iterable[str]]) -> "AccessCheck":
        return cls(KeyKind.CAPABILITY, tuple(normalize_keys(capability_keys)), Match.ANY)

    @classmethod
    def all_capabilities(cls, capability_keys: Optional[Iterable[str]]) -> "AccessCheck":
        return cls(KeyKind.CAPABILITY, tuple(normalize_keys(capability_keys)), Match.ALL)

    @property
    def check_type(self) -> str:
        return CHECK_TYPES[(self.kind, self.match)]

    @property
    def unrestricted(self) -> bool:
        # capability checks without keys pass; a blank route key never matches
        return self.kind is KeyKind.CAPABILITY and not self.keys

    def allows(self, principal: SessionUser) -> bool:
        effective = principal.effective
        if self.kind is KeyKind.ROUTE:
            return can_route(effective, self.keys[0])
        if self.match is Match.ANY:
            return can_any_capability(effective, self.keys)
        if self.match is Match.ALL:
            return can_all_capabilities(effective, self.keys)
        return can_capability(effective, self.keys[0])


def check_access(
    principal: Optional[SessionUser],
    check: AccessCheck,
    enforcement: EnforcementController,
) -> AccessDecision:
    if principal is None:
        return AccessDecision.UNAUTHENTICATED

    if check.unrestricted or check.allows(principal):
        return AccessDecision.ALLOW

    if enforcement.should_enforce_any(check.kind, check.keys):
        return AccessDecision.DENY

    return AccessDecision.OBSERVE_ALLOW
