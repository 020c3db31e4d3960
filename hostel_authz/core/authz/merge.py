# hostel_authz/core/authz/merge.py

from typing import Any, Dict, FrozenSet, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from hostel_authz.core.authz.catalog import (
    CAPABILITY_KEY_SET,
    ROUTE_KEY_SET,
    default_capability_keys,
    default_constraints,
    default_route_keys,
    is_constraint_key,
)
from hostel_authz.core.authz.constants import AUTHZ_CATALOG_VERSION, WILDCARD
from hostel_authz.core.authz.override import AuthzOverride, extract_override, parse_override
from hostel_authz.core.authz.permissions import role_value


class EffectiveAuthz(BaseModel):
    """
    Resolved access of one user: role defaults with the override applied.
    Read-only; rebuild it instead of editing it.
    """
    model_config = ConfigDict(frozen=True)

    catalog_version: int = AUTHZ_CATALOG_VERSION
    role: Optional[str] = None
    routes: FrozenSet[str] = frozenset()
    capabilities: FrozenSet[str] = frozenset()
    constraints: Dict[str, Any] = Field(default_factory=dict)

    def to_session(self) -> Dict[str, Any]:
        return {
            "catalog_version": self.catalog_version,
            "role": self.role,
            "routes": sorted(self.routes),
            "capabilities": sorted(self.capabilities),
            "constraints": dict(self.constraints),
        }

    @classmethod
    def from_session(cls, data: Mapping[str, Any]) -> "EffectiveAuthz":
        return cls(
            catalog_version=data.get("catalog_version", 0),
            role=data.get("role"),
            routes=frozenset(data.get("routes") or ()),
            capabilities=frozenset(data.get("capabilities") or ()),
            constraints=dict(data.get("constraints") or {}),
        )


def _apply(base: set, grants: FrozenSet[str], revokes: FrozenSet[str], known: FrozenSet[str]) -> FrozenSet[str]:
    # grants first so a key both granted and revoked ends up revoked
    if WILDCARD in grants:
        base |= known
    base |= grants & known

    if WILDCARD in revokes:
        base.clear()
    base -= revokes
    return frozenset(base)


def build_effective_authz(role, override: Any = None) -> EffectiveAuthz:
    """
    Combine the role defaults with a per-user override.

    Total and pure: unknown roles start from nothing, unknown keys in the
    override are skipped, and identical input always gives an equal result.
    """
    if not isinstance(override, AuthzOverride):
        override = parse_override(override)

    routes = _apply(
        set(default_route_keys(role)),
        override.granted_routes,
        override.revoked_routes,
        ROUTE_KEY_SET,
    )
    capabilities = _apply(
        set(default_capability_keys(role)),
        override.granted_capabilities,
        override.revoked_capabilities,
        CAPABILITY_KEY_SET,
    )

    constraints = default_constraints()
    for entry in override.constraints:
        if is_constraint_key(entry.key):
            constraints[entry.key] = entry.value

    return EffectiveAuthz(
        role=role_value(role) or None,
        routes=routes,
        capabilities=capabilities,
        constraints=constraints,
    )


def build_effective_authz_for_user(user: Any) -> EffectiveAuthz:
    role = user.get("role") if isinstance(user, Mapping) else getattr(user, "role", None)
    return build_effective_authz(role, extract_override(user))
