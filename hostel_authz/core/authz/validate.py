# hostel_authz/core/authz/validate.py

"""
Admin-edit-time validation of override payloads.

The builder ignores unknown keys, so this is the only place where a typo in
a key is reported back to whoever edits a user's access.
"""

import math
from collections.abc import Mapping
from typing import Any, Callable, Dict, List

from pydantic import BaseModel

from hostel_authz.core.authz.catalog import (
    get_constraint_definition,
    is_capability_key,
    is_route_key,
)
from hostel_authz.core.authz.constants import (
    CAPABILITY_KEY_PREFIX,
    ROUTE_KEY_PREFIX,
    WILDCARD,
    ConstraintType,
)
from hostel_authz.core.authz.override import AuthzOverride, is_bucket_shape, parse_override, unique_keys


class OverrideError(BaseModel):
    field: str
    key: str
    message: str


class OverrideValidation(BaseModel):
    is_valid: bool
    errors: List[OverrideError]
    normalized: AuthzOverride


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


_TYPE_CHECKS = {
    ConstraintType.BOOLEAN: lambda v: isinstance(v, bool),
    ConstraintType.STRING: lambda v: isinstance(v, str),
    ConstraintType.STRING_ARRAY: lambda v: isinstance(v, list) and all(isinstance(i, str) for i in v),
    ConstraintType.NUMBER: _is_number,
    ConstraintType.NUMBER_ARRAY: lambda v: isinstance(v, list) and all(_is_number(i) for i in v),
    ConstraintType.OBJECT: lambda v: isinstance(v, dict),
    ConstraintType.ANY: lambda v: True,
}


def _check_key(field: str, key: str) -> List[OverrideError]:
    if key.startswith(ROUTE_KEY_PREFIX):
        known = is_route_key(key)
    elif key == WILDCARD or key.startswith(CAPABILITY_KEY_PREFIX):
        known = is_capability_key(key, allow_wildcard=True)
    else:
        known = False

    if known:
        return []
    return [OverrideError(field=field, key=key, message=f"Unknown {field} key: {key}")]


def _is_capability_or_wildcard(key: str) -> bool:
    return is_capability_key(key, allow_wildcard=True)


# each bucket only accepts its own kind of key
_BUCKET_CHECKS: Dict[str, Callable[[str], bool]] = {
    "allowRoutes": is_route_key,
    "denyRoutes": is_route_key,
    "allowCapabilities": _is_capability_or_wildcard,
    "denyCapabilities": _is_capability_or_wildcard,
}


def _check_buckets(payload: Mapping) -> List[OverrideError]:
    errors: List[OverrideError] = []
    for bucket, is_known in _BUCKET_CHECKS.items():
        for key in unique_keys(payload.get(bucket)):
            if not is_known(key):
                errors.append(OverrideError(field=bucket, key=key, message=f"Unknown {bucket} key: {key}"))
    return errors


def _uses_buckets(payload: Any) -> bool:
    return (
        isinstance(payload, Mapping)
        and is_bucket_shape(payload)
        and "grants" not in payload
        and "revokes" not in payload
    )


def validate_override(payload: Any) -> OverrideValidation:
    normalized = parse_override(payload)
    errors: List[OverrideError] = []

    if _uses_buckets(payload):
        errors.extend(_check_buckets(payload))
    else:
        for key in sorted(normalized.grants):
            errors.extend(_check_key("grants", key))
        for key in sorted(normalized.revokes):
            errors.extend(_check_key("revokes", key))

    for entry in normalized.constraints:
        definition = get_constraint_definition(entry.key)
        if definition is None:
            errors.append(OverrideError(
                field="constraints",
                key=entry.key,
                message=f"Unknown constraint key: {entry.key}",
            ))
            continue

        if not _TYPE_CHECKS[definition.value_type](entry.value):
            errors.append(OverrideError(
                field="constraints",
                key=entry.key,
                message=f"Invalid value type for {entry.key}. Expected {definition.value_type.value}",
            ))

    return OverrideValidation(is_valid=not errors, errors=errors, normalized=normalized)


def errors_as_dicts(validation: OverrideValidation) -> List[Dict[str, str]]:
    return [error.model_dump() for error in validation.errors]
