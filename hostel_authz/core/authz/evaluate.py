# hostel_authz/core/authz/evaluate.py

from typing import Any, Iterable, List, Optional

from hostel_authz.core.authz.merge import EffectiveAuthz


def normalize_key(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def normalize_keys(values: Optional[Iterable[Any]]) -> List[str]:
    if values is None or isinstance(values, str):
        return []
    return [key for key in (normalize_key(v) for v in values) if key]


def can_route(effective: Optional[EffectiveAuthz], route_key: str) -> bool:
    key = normalize_key(route_key)
    if effective is None or not key:
        return False
    return key in effective.routes


def can_capability(effective: Optional[EffectiveAuthz], capability_key: str) -> bool:
    key = normalize_key(capability_key)
    if effective is None or not key:
        return False
    return key in effective.capabilities


def can_any_capability(effective: Optional[EffectiveAuthz], capability_keys: Iterable[str]) -> bool:
    keys = normalize_keys(capability_keys)
    return any(can_capability(effective, key) for key in keys)


def can_all_capabilities(effective: Optional[EffectiveAuthz], capability_keys: Iterable[str]) -> bool:
    keys = normalize_keys(capability_keys)
    if not keys:
        return False
    return all(can_capability(effective, key) for key in keys)


def get_constraint_value(effective: Optional[EffectiveAuthz], constraint_key: str, fallback: Any = None) -> Any:
    key = normalize_key(constraint_key)
    if effective is None or not key or key not in effective.constraints:
        return fallback
    return effective.constraints[key]
