from __future__ import annotations

import json
import sys
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Mapping, Optional

import botocore
from botocore.exceptions import ClientError

from ..exceptions import AwsIamError, CredentialsNotFound, ServiceUnavailable
from ..logger_config import get_logger
from . import builder
from .builder import build_request
from .credentials import Credentials, CredentialsLike, as_credentials, iam_client
from .mappers import InstanceProfile, Role, RolePolicy, decode_exception, to_map, to_maps

logger = get_logger(__name__)

# What the AWS console uses for a new EC2 role.
DEFAULT_ROLE_CREATION_PARAMS: Dict[str, Any] = {
    "path": "/",
    "assume-role-policy-document": (
        '{"Version":"2008-10-17","Statement":[{"Effect":"Allow",'
        '"Principal":{"Service":["ec2.amazonaws.com"]},'
        '"Action":["sts:AssumeRole"]}]}'
    ),
}


@contextmanager
def _translate_errors(operation: str) -> Iterator[None]:
    """Map botocore's local failures onto library errors; service errors pass through."""
    logger.debug("calling IAM %s", operation)
    try:
        yield
    except botocore.exceptions.NoCredentialsError as e:
        logger.warning("%s: no AWS credentials", operation)
        raise CredentialsNotFound(
            "AWS credentials not found. Set env vars, ~/.aws/credentials, or an IAM role."
        ) from e
    except botocore.exceptions.ParamValidationError:
        raise
    except botocore.exceptions.BotoCoreError as e:
        logger.warning("%s failed: %s", operation, e)
        raise ServiceUnavailable(f"Boto core error: {e}") from e


class IAMClient:
    """
    Thin wrapper around a boto3 IAM client for roles, role policies and
    instance profiles. Results are plain dicts with dashed keys.
    """

    def __init__(self, cred: CredentialsLike = None, client: Any = None) -> None:
        self._cred = as_credentials(cred)
        self._iam = client if client is not None else iam_client(self._cred)

    @property
    def credentials(self) -> Credentials:
        return self._cred

    def _call(self, shape: builder.RequestShape, params: Mapping[str, Any]) -> Dict[str, Any]:
        request = build_request(shape, params)
        with _translate_errors(shape.operation):
            return getattr(self._iam, shape.method)(**request)

    def _paginate(self, method: str, key: str, **kwargs: Any) -> List[Any]:
        out: List[Any] = []
        with _translate_errors(method):
            for page in self._iam.get_paginator(method).paginate(**kwargs):
                out.extend(page.get(key, []))
        return out

    # --- roles ---

    def list_roles(self) -> List[Optional[Dict[str, Any]]]:
        """
        List IAM roles.

        Example of a returned item::

            {"id": "AROAIPRNAHWD6N2AFU756",
             "name": "all-aws-role",
             "arn": "arn:aws:iam::012767801645:role/all-aws-role",
             "assume-role-policy-document": '{"Version": "2008-10-17", ...}',
             "created-date": datetime(2013, 4, 2, 5, 7, 26, tzinfo=tzutc()),
             "path": "/"}
        """
        roles = self._paginate("list_roles", "Roles")
        return to_maps([Role.from_aws(r) for r in roles])

    def create_role(self, params: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Create a role and return it. ``path`` and the trust policy default to
        what the console uses for EC2 roles unless given.

            client.create_role({"role-name": "Role-name-here"})
        """
        merged = {**DEFAULT_ROLE_CREATION_PARAMS, **params}
        resp = self._call(builder.CREATE_ROLE, merged)
        return to_map(Role.from_aws(resp["Role"]))

    def delete_role(self, role_name: str) -> None:
        self._call(builder.DELETE_ROLE, {"role-name": role_name})

    # --- role policies ---

    def list_role_policies(self, role_name: str) -> List[str]:
        """Names of the inline policies attached to ``role_name``."""
        request = build_request(builder.LIST_ROLE_POLICIES, {"role-name": role_name})
        return self._paginate("list_role_policies", "PolicyNames", **request)

    def get_policy(self, params: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Fetch one inline policy, e.g.
        ``{"role-name": "all-aws-role", "policy-name": "AdministratorAccess"}``.

        Returns ``{"role-name", "policy-name", "policy-document"}`` with the
        document as JSON text.
        """
        resp = self._call(builder.GET_ROLE_POLICY, params)
        return to_map(RolePolicy.from_aws(resp))

    def get_role_policies(self, role_name: str) -> List[Optional[Dict[str, Any]]]:
        """Every inline policy of ``role_name``, one GetRolePolicy call per name."""
        return [
            self.get_policy({"role-name": role_name, "policy-name": policy_name})
            for policy_name in self.list_role_policies(role_name)
        ]

    def put_role_policy(self, params: Mapping[str, Any]) -> None:
        """
        Add or replace an inline policy on an existing role::

            client.put_role_policy({"role-name": "role-name",
                                    "policy-name": "Soup-for-you",
                                    "policy-document": '{"Statement": [...]}'})
        """
        self._call(builder.PUT_ROLE_POLICY, params)

    def delete_role_policy(self, params: Mapping[str, Any]) -> None:
        self._call(
            builder.DELETE_ROLE_POLICY,
            {"role-name": params.get("role-name"), "policy-name": params.get("policy-name")},
        )

    # --- instance profiles ---

    def list_instance_profiles(self) -> List[Optional[Dict[str, Any]]]:
        profiles = self._paginate("list_instance_profiles", "InstanceProfiles")
        return to_maps([InstanceProfile.from_aws(p) for p in profiles])

    def get_instance_profile(self, profile_name: str) -> Optional[Dict[str, Any]]:
        resp = self._call(
            builder.GET_INSTANCE_PROFILE, {"instance-profile-name": profile_name}
        )
        return to_map(InstanceProfile.from_aws(resp["InstanceProfile"]))

    def create_instance_profile(
        self, profile_name: str, path: str = "/"
    ) -> Optional[Dict[str, Any]]:
        resp = self._call(
            builder.CREATE_INSTANCE_PROFILE,
            {"instance-profile-name": profile_name, "path": path},
        )
        return to_map(InstanceProfile.from_aws(resp["InstanceProfile"]))

    def add_role_to_instance_profile(
        self, role_name: str, instance_profile_name: str
    ) -> None:
        self._call(
            builder.ADD_ROLE_TO_INSTANCE_PROFILE,
            {"role-name": role_name, "instance-profile-name": instance_profile_name},
        )

    def remove_role_from_instance_profile(
        self, role_name: str, instance_profile_name: str
    ) -> None:
        self._call(
            builder.REMOVE_ROLE_FROM_INSTANCE_PROFILE,
            {"role-name": role_name, "instance-profile-name": instance_profile_name},
        )

    def delete_instance_profile(self, instance_profile_name: str) -> None:
        self._call(
            builder.DELETE_INSTANCE_PROFILE,
            {"instance-profile-name": instance_profile_name},
        )


# Functional API: every call takes credentials first and uses the memoized client.


def list_roles(cred: CredentialsLike) -> List[Optional[Dict[str, Any]]]:
    return IAMClient(cred).list_roles()


def create_role(cred: CredentialsLike, params: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
    return IAMClient(cred).create_role(params)


def delete_role(cred: CredentialsLike, role_name: str) -> None:
    IAMClient(cred).delete_role(role_name)


def list_role_policies(cred: CredentialsLike, role_name: str) -> List[str]:
    return IAMClient(cred).list_role_policies(role_name)


def get_policy(cred: CredentialsLike, params: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
    return IAMClient(cred).get_policy(params)


def get_role_policies(cred: CredentialsLike, role_name: str) -> List[Optional[Dict[str, Any]]]:
    return IAMClient(cred).get_role_policies(role_name)


def put_role_policy(cred: CredentialsLike, params: Mapping[str, Any]) -> None:
    IAMClient(cred).put_role_policy(params)


def delete_role_policy(cred: CredentialsLike, params: Mapping[str, Any]) -> None:
    IAMClient(cred).delete_role_policy(params)


def list_instance_profiles(cred: CredentialsLike) -> List[Optional[Dict[str, Any]]]:
    return IAMClient(cred).list_instance_profiles()


def get_instance_profile(cred: CredentialsLike, profile_name: str) -> Optional[Dict[str, Any]]:
    return IAMClient(cred).get_instance_profile(profile_name)


def create_instance_profile(
    cred: CredentialsLike, profile_name: str, path: str = "/"
) -> Optional[Dict[str, Any]]:
    return IAMClient(cred).create_instance_profile(profile_name, path)


def add_role_to_instance_profile(
    cred: CredentialsLike, role_name: str, instance_profile_name: str
) -> None:
    IAMClient(cred).add_role_to_instance_profile(role_name, instance_profile_name)


def remove_role_from_instance_profile(
    cred: CredentialsLike, role_name: str, instance_profile_name: str
) -> None:
    IAMClient(cred).remove_role_from_instance_profile(role_name, instance_profile_name)


def delete_instance_profile(cred: CredentialsLike, instance_profile_name: str) -> None:
    IAMClient(cred).delete_instance_profile(instance_profile_name)


class _IAMFacade:
    """
    Convenience facade so callers can do:
        from awsiam.iam import iam
        iam.list_roles(cred)
        iam(cred) -> IAMClient  # construct explicitly
    """

    def __call__(self, *args: Any, **kwargs: Any) -> IAMClient:
        return IAMClient(*args, **kwargs)

    list_roles = staticmethod(list_roles)
    create_role = staticmethod(create_role)
    delete_role = staticmethod(delete_role)
    list_role_policies = staticmethod(list_role_policies)
    get_policy = staticmethod(get_policy)
    get_role_policies = staticmethod(get_role_policies)
    put_role_policy = staticmethod(put_role_policy)
    delete_role_policy = staticmethod(delete_role_policy)
    list_instance_profiles = staticmethod(list_instance_profiles)
    get_instance_profile = staticmethod(get_instance_profile)
    create_instance_profile = staticmethod(create_instance_profile)
    add_role_to_instance_profile = staticmethod(add_role_to_instance_profile)
    remove_role_from_instance_profile = staticmethod(remove_role_from_instance_profile)
    delete_instance_profile = staticmethod(delete_instance_profile)
    decode_exception = staticmethod(decode_exception)


# Singleton-style convenience export
iam = _IAMFacade()


def main(argv: Optional[List[str]] = None) -> int:
    import argparse

    parser = argparse.ArgumentParser(
        prog="awsiam-iam", description="IAM roles, policies and instance profiles"
    )
    parser.add_argument("--endpoint", help="IAM endpoint (overrides env/config)")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("list-roles")
    sub.add_parser("list-instance-profiles")
    for name in ("list-role-policies", "get-role-policies"):
        sub.add_parser(name).add_argument("role_name")
    sub.add_parser("get-instance-profile").add_argument("profile_name")

    args = parser.parse_args(argv)

    try:
        cred = Credentials.from_env()
        if args.endpoint:
            cred = Credentials(
                cred.access_key, cred.secret_key, args.endpoint, cred.session_token
            )
        client = IAMClient(cred)
        if args.command == "list-roles":
            out: Any = client.list_roles()
        elif args.command == "list-instance-profiles":
            out = client.list_instance_profiles()
        elif args.command == "list-role-policies":
            out = client.list_role_policies(args.role_name)
        elif args.command == "get-role-policies":
            out = client.get_role_policies(args.role_name)
        else:
            out = client.get_instance_profile(args.profile_name)
        print(json.dumps(out, indent=2, default=str))
        return 0
    except ClientError as e:
        print(json.dumps(decode_exception(e), indent=2), file=sys.stderr)
        return 1
    except AwsIamError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        return 3
