from .credentials import Credentials as Credentials
from .iam import (
    IAMClient as IAMClient,
    add_role_to_instance_profile as add_role_to_instance_profile,
    create_instance_profile as create_instance_profile,
    create_role as create_role,
    delete_instance_profile as delete_instance_profile,
    delete_role as delete_role,
    delete_role_policy as delete_role_policy,
    get_instance_profile as get_instance_profile,
    get_policy as get_policy,
    get_role_policies as get_role_policies,
    iam as iam,
    list_instance_profiles as list_instance_profiles,
    list_role_policies as list_role_policies,
    list_roles as list_roles,
    put_role_policy as put_role_policy,
    remove_role_from_instance_profile as remove_role_from_instance_profile,
)
from .mappers import decode_exception as decode_exception

__all__ = [
    "Credentials",
    "IAMClient",
    "add_role_to_instance_profile",
    "create_instance_profile",
    "create_role",
    "decode_exception",
    "delete_instance_profile",
    "delete_role",
    "delete_role_policy",
    "get_instance_profile",
    "get_policy",
    "get_role_policies",
    "iam",
    "list_instance_profiles",
    "list_role_policies",
    "list_roles",
    "put_role_policy",
    "remove_role_from_instance_profile",
]
