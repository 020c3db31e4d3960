# hostel_authz/core/authz/constants.py

from enum import Enum

# Bump whenever the catalog changes; cached session authz built against an
# older version is rebuilt on the next request.
AUTHZ_CATALOG_VERSION = 3

WILDCARD = "*"

ROUTE_KEY_PREFIX = "route."
CAPABILITY_KEY_PREFIX = "cap."


class AuthzMode(str, Enum):
    OFF = "off"
    OBSERVE = "observe"
    ENFORCE = "enforce"


class KeyKind(str, Enum):
    ROUTE = "route"
    CAPABILITY = "capability"


class ConstraintType(str, Enum):
    BOOLEAN = "boolean"
    STRING = "string"
    STRING_ARRAY = "string[]"
    NUMBER = "number"
    NUMBER_ARRAY = "number[]"
    OBJECT = "object"
    ANY = "any"
