# hostel_authz/core/authz/override.py

"""
Per-user override: a diff of grants and revokes against the role baseline.

Three stored shapes are understood and migrated at read time:

* current:  {"grants": [...], "revokes": [...], "constraints": [...]}
* buckets:  {"allowRoutes", "denyRoutes", "allowCapabilities",
             "denyCapabilities", "constraints"} from the first admin UI
* legacy:   the flat resource/action `permissions` map on the user record

Every input, including garbage, maps to a valid AuthzOverride.
"""

from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from hostel_authz.core.authz.catalog import RESOURCES, capability_key
from hostel_authz.core.authz.constants import (
    CAPABILITY_KEY_PREFIX,
    ROUTE_KEY_PREFIX,
    WILDCARD,
)
from hostel_authz.core.authz.permissions import ACTIONS, get_default_permissions

_BUCKET_FIELDS = ("allowRoutes", "denyRoutes", "allowCapabilities", "denyCapabilities")


class ConstraintOverride(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str
    value: Any = None


class AuthzOverride(BaseModel):
    model_config = ConfigDict(frozen=True)

    grants: FrozenSet[str] = frozenset()
    revokes: FrozenSet[str] = frozenset()
    constraints: Tuple[ConstraintOverride, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.grants or self.revokes or self.constraints)

    @property
    def granted_routes(self) -> FrozenSet[str]:
        return frozenset(k for k in self.grants if k.startswith(ROUTE_KEY_PREFIX))

    @property
    def revoked_routes(self) -> FrozenSet[str]:
        return frozenset(k for k in self.revokes if k.startswith(ROUTE_KEY_PREFIX))

    @property
    def granted_capabilities(self) -> FrozenSet[str]:
        return frozenset(k for k in self.grants if _is_capability_like(k))

    @property
    def revoked_capabilities(self) -> FrozenSet[str]:
        return frozenset(k for k in self.revokes if _is_capability_like(k))

    def to_document(self) -> Dict[str, Any]:
        """Stable, JSON-ready form stored on the user record."""
        return {
            "grants": sorted(self.grants),
            "revokes": sorted(self.revokes),
            "constraints": [{"key": c.key, "value": c.value} for c in self.constraints],
        }


def _is_capability_like(key: str) -> bool:
    return key == WILDCARD or key.startswith(CAPABILITY_KEY_PREFIX)


def unique_keys(value: Any) -> List[str]:
    """Trimmed, non-empty, de-duplicated strings; anything that is not a list yields []."""
    if not isinstance(value, (list, tuple, set, frozenset)):
        return []

    seen = dict.fromkeys(
        item.strip() for item in value if isinstance(item, str) and item.strip()
    )
    return list(seen)


def _normalize_constraints(value: Any) -> Tuple[ConstraintOverride, ...]:
    if not isinstance(value, (list, tuple)):
        return ()

    by_key: Dict[str, Any] = {}
    for entry in value:
        if not isinstance(entry, Mapping) or not isinstance(entry.get("key"), str):
            continue
        key = entry["key"].strip()
        if key:
            by_key[key] = entry.get("value")

    return tuple(ConstraintOverride(key=k, value=by_key[k]) for k in sorted(by_key))


def empty_override() -> AuthzOverride:
    return AuthzOverride()


def is_bucket_shape(raw: Mapping) -> bool:
    return any(name in raw for name in _BUCKET_FIELDS)


def parse_override(raw: Any) -> AuthzOverride:
    """Turn any stored override document into an AuthzOverride."""
    if not isinstance(raw, Mapping):
        return empty_override()

    if is_bucket_shape(raw) and "grants" not in raw and "revokes" not in raw:
        grants = unique_keys(raw.get("allowRoutes")) + unique_keys(raw.get("allowCapabilities"))
        revokes = unique_keys(raw.get("denyRoutes")) + unique_keys(raw.get("denyCapabilities"))
    else:
        grants = unique_keys(raw.get("grants"))
        revokes = unique_keys(raw.get("revokes"))

    return AuthzOverride(
        grants=frozenset(grants),
        revokes=frozenset(revokes),
        constraints=_normalize_constraints(raw.get("constraints")),
    )


def migrate_legacy_permissions(role, permissions: Any) -> AuthzOverride:
    """
    Express a flat resource/action map as a diff against the role defaults.
    Flags the legacy map does not mention carry no information.
    """
    if not isinstance(permissions, Mapping):
        return empty_override()

    defaults = get_default_permissions(role)
    grants, revokes = set(), set()

    for resource, flags in permissions.items():
        if resource not in RESOURCES or not isinstance(flags, Mapping):
            continue
        baseline = defaults.get(resource, {})
        for action in ACTIONS:
            if action not in flags:
                continue
            wanted = flags[action] is True
            if wanted and not baseline.get(action, False):
                grants.add(capability_key(resource, action))
            elif not wanted and baseline.get(action, False):
                revokes.add(capability_key(resource, action))

    return AuthzOverride(grants=frozenset(grants), revokes=frozenset(revokes))


def _get(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def extract_override(user_record: Any) -> AuthzOverride:
    """
    Override stored on a user record (model instance or plain dict).
    Falls back to migrating the legacy `permissions` map when no override
    has been written yet.
    """
    if user_record is None:
        return empty_override()

    authz = _get(user_record, "authz")
    if isinstance(authz, Mapping) and isinstance(authz.get("override"), Mapping):
        return parse_override(authz["override"])

    legacy = _get(user_record, "permissions")
    if legacy:
        return migrate_legacy_permissions(_get(user_record, "role"), legacy)

    return empty_override()


def override_meta(authz: Optional[Mapping]) -> Optional[Dict[str, Any]]:
    if isinstance(authz, Mapping) and isinstance(authz.get("meta"), Mapping):
        return dict(authz["meta"])
    return None
