"""
Request construction: dash-keyed parameter mappings -> boto3 keyword arguments.

Each IAM request type is described by a ``RequestShape`` listing its members
and their declared types, so a params mapping can be checked against the
request it populates without runtime introspection of the SDK.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping

from ..exceptions import UnknownParameter
from ..utils import keyword_to_method


@dataclass(frozen=True)
class RequestShape:
    operation: str
    members: Mapping[str, type] = field(default_factory=dict, hash=False)

    @property
    def method(self) -> str:
        """boto3 client method name, e.g. ``create_role``."""
        out: List[str] = []
        for i, ch in enumerate(self.operation):
            if ch.isupper() and i > 0:
                out.append("_")
            out.append(ch.lower())
        return "".join(out)


CREATE_ROLE = RequestShape(
    "CreateRole",
    {
        "Path": str,
        "RoleName": str,
        "AssumeRolePolicyDocument": str,
        "Description": str,
        "MaxSessionDuration": int,
        "PermissionsBoundary": str,
        "Tags": list,
    },
)
DELETE_ROLE = RequestShape("DeleteRole", {"RoleName": str})
LIST_ROLE_POLICIES = RequestShape("ListRolePolicies", {"RoleName": str})
GET_ROLE_POLICY = RequestShape("GetRolePolicy", {"RoleName": str, "PolicyName": str})
PUT_ROLE_POLICY = RequestShape(
    "PutRolePolicy", {"RoleName": str, "PolicyName": str, "PolicyDocument": str}
)
DELETE_ROLE_POLICY = RequestShape(
    "DeleteRolePolicy", {"RoleName": str, "PolicyName": str}
)
GET_INSTANCE_PROFILE = RequestShape("GetInstanceProfile", {"InstanceProfileName": str})
CREATE_INSTANCE_PROFILE = RequestShape(
    "CreateInstanceProfile", {"InstanceProfileName": str, "Path": str, "Tags": list}
)
DELETE_INSTANCE_PROFILE = RequestShape(
    "DeleteInstanceProfile", {"InstanceProfileName": str}
)
ADD_ROLE_TO_INSTANCE_PROFILE = RequestShape(
    "AddRoleToInstanceProfile", {"InstanceProfileName": str, "RoleName": str}
)
REMOVE_ROLE_FROM_INSTANCE_PROFILE = RequestShape(
    "RemoveRoleFromInstanceProfile", {"InstanceProfileName": str, "RoleName": str}
)

# Per-key builders for nested values, keyed by the dashed parameter key.
# Nothing is registered by default; values of unregistered keys are set as-is.
NESTED_BUILDERS: Dict[str, Callable[[Any], Any]] = {}


def register_nested_builder(key: str, builder: Callable[[Any], Any]) -> None:
    """Route values for ``key`` through ``builder`` before they are set."""
    NESTED_BUILDERS[key] = builder


def nested_builder(key: str) -> Callable[[Any], Any]:
    return NESTED_BUILDERS.get(key, _identity)


def _identity(value: Any) -> Any:
    return value


def coerce(value: Any, declared: type) -> Any:
    # Only text -> integer is converted; everything else is left to the service.
    if declared is int and isinstance(value, str):
        return int(value)
    return value


def build_request(shape: RequestShape, params: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Translate ``params`` into keyword arguments for ``shape``.

    Raises:
        UnknownParameter: a key has no member on the request.
        ValueError: an integer member was given text that is not a number.
    """
    request: Dict[str, Any] = {}
    for key, value in params.items():
        member = keyword_to_method(key)
        if member not in shape.members:
            raise UnknownParameter(key, shape.operation)
        value = nested_builder(key)(value)
        request[member] = coerce(value, shape.members[member])
    return request
