from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple, Union
from urllib.parse import unquote

from botocore.exceptions import ClientError

from ..exceptions import UnsupportedValue


def decode_document(doc: Any) -> Optional[str]:
    """
    Return a policy document as JSON text.

    The IAM API returns documents URL-encoded; boto3 usually decodes and parses
    them already, in which case the parsed document is serialized back.
    """
    if doc is None:
        return None
    if isinstance(doc, str):
        return unquote(doc)
    return json.dumps(doc)


@dataclass(frozen=True)
class Role:
    role_id: str
    role_name: str
    arn: str
    assume_role_policy_document: Optional[str]
    create_date: Optional[datetime]
    path: str

    @staticmethod
    def from_aws(d: Dict[str, Any]) -> "Role":
        return Role(
            role_id=d.get("RoleId", ""),
            role_name=d.get("RoleName", ""),
            arn=d.get("Arn", ""),
            assume_role_policy_document=decode_document(
                d.get("AssumeRolePolicyDocument")
            ),
            create_date=d.get("CreateDate"),
            path=d.get("Path", ""),
        )

    def to_map(self) -> Dict[str, Any]:
        return {
            "id": self.role_id,
            "name": self.role_name,
            "arn": self.arn,
            "assume-role-policy-document": self.assume_role_policy_document,
            "created-date": self.create_date,
            "path": self.path,
        }


@dataclass(frozen=True)
class RolePolicy:
    """Result of GetRolePolicy: one inline policy of a role."""

    role_name: str
    policy_name: str
    policy_document: Optional[str]

    @staticmethod
    def from_aws(d: Dict[str, Any]) -> "RolePolicy":
        return RolePolicy(
            role_name=d.get("RoleName", ""),
            policy_name=d.get("PolicyName", ""),
            policy_document=decode_document(d.get("PolicyDocument")),
        )

    def to_map(self) -> Dict[str, Any]:
        return {
            "role-name": self.role_name,
            "policy-name": self.policy_name,
            "policy-document": self.policy_document,
        }


@dataclass(frozen=True)
class InstanceProfile:
    arn: str
    instance_profile_id: str
    instance_profile_name: str
    create_date: Optional[datetime]
    path: str
    roles: Tuple[Role, ...] = field(default_factory=tuple)

    @staticmethod
    def from_aws(d: Dict[str, Any]) -> "InstanceProfile":
        return InstanceProfile(
            arn=d.get("Arn", ""),
            instance_profile_id=d.get("InstanceProfileId", ""),
            instance_profile_name=d.get("InstanceProfileName", ""),
            create_date=d.get("CreateDate"),
            path=d.get("Path", ""),
            roles=tuple(Role.from_aws(r) for r in d.get("Roles", [])),
        )

    def to_map(self) -> Dict[str, Any]:
        return {
            "arn": self.arn,
            "id": self.instance_profile_id,
            "name": self.instance_profile_name,
            "create-date": self.create_date,
            "path": self.path,
            "roles": [r.to_map() for r in self.roles],
        }


Mappable = Union[Role, RolePolicy, InstanceProfile]


def to_map(value: Optional[Mappable]) -> Optional[Dict[str, Any]]:
    """Convert a supported value to a plain dict; ``None`` stays ``None``."""
    if value is None:
        return None
    if isinstance(value, (Role, RolePolicy, InstanceProfile)):
        return value.to_map()
    raise UnsupportedValue(f"cannot convert {type(value).__name__} to a mapping")


def to_maps(values: List[Mappable]) -> List[Optional[Dict[str, Any]]]:
    return [to_map(v) for v in values]


# AWS error "Type" values -> the SDK's error-type taxonomy.
_ERROR_TYPES = {"Sender": "Client", "Receiver": "Service"}


def decode_exception(
    exception: ClientError, service_name: str = "iam"
) -> Dict[str, Any]:
    """
    Return the details of a service exception as a dict.

    Example::

        try:
            delete_role(cred, "missing")
        except ClientError as e:
            decode_exception(e)
        # {'error-code': 'NoSuchEntity', 'error-type': 'Client',
        #  'service-name': 'iam', 'status-code': 404, 'message': '...'}
    """
    if not isinstance(exception, ClientError):
        raise UnsupportedValue(
            f"cannot decode {type(exception).__name__}; expected a ClientError"
        )
    error = exception.response.get("Error", {})
    meta = exception.response.get("ResponseMetadata", {})
    return {
        "error-code": error.get("Code"),
        "error-type": _ERROR_TYPES.get(error.get("Type", ""), "Unknown"),
        "service-name": service_name,
        "status-code": meta.get("HTTPStatusCode"),
        "message": error.get("Message"),
    }
