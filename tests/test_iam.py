import json
from unittest.mock import MagicMock, call

import botocore
import pytest
from botocore.exceptions import ClientError

from awsiam.exceptions import CredentialsNotFound, ServiceUnavailable, UnknownParameter
from awsiam.iam import (
    IAMClient,
    create_instance_profile,
    create_role,
    delete_role_policy,
    get_role_policies,
    iam,
    list_roles,
)
from awsiam.iam.credentials import clients
from awsiam.iam.iam import DEFAULT_ROLE_CREATION_PARAMS, main

CRED = {"access-key": "AKIA", "secret-key": "s3cr3t"}


def _pages(key, *chunks):
    paginator = MagicMock()
    paginator.paginate.return_value = [{key: list(c)} for c in chunks]
    return paginator


def test_imports():
    assert callable(iam.list_roles)
    assert callable(iam.decode_exception)
    assert isinstance(iam(CRED, client=MagicMock()), IAMClient)


def test_facade_rejects_unknown_names():
    with pytest.raises(AttributeError):
        iam.describe_instances


def test_create_role_applies_defaults(mock_iam):
    mock_iam.create_role.return_value = {
        "Role": {"RoleId": "AROA1", "RoleName": "X", "Arn": "arn", "Path": "/"}
    }

    out = create_role(CRED, {"role-name": "X"})

    mock_iam.create_role.assert_called_once_with(
        RoleName="X",
        Path="/",
        AssumeRolePolicyDocument=DEFAULT_ROLE_CREATION_PARAMS[
            "assume-role-policy-document"
        ],
    )
    assert out["name"] == "X"
    assert out["id"] == "AROA1"


def test_create_role_caller_params_override_defaults(mock_iam):
    mock_iam.create_role.return_value = {"Role": {"RoleName": "X"}}

    create_role(CRED, {"role-name": "X", "path": "/service/"})

    assert mock_iam.create_role.call_args.kwargs["Path"] == "/service/"


def test_create_role_unknown_parameter_never_calls_service(mock_iam):
    with pytest.raises(UnknownParameter):
        create_role(CRED, {"role-name": "X", "colour": "blue"})
    mock_iam.create_role.assert_not_called()


def test_get_role_policies_fetches_each_policy(mock_iam):
    mock_iam.get_paginator.return_value = _pages("PolicyNames", ["p1"], ["p2"])
    mock_iam.get_role_policy.side_effect = lambda RoleName, PolicyName: {
        "RoleName": RoleName,
        "PolicyName": PolicyName,
        "PolicyDocument": {"Statement": [{"Sid": PolicyName}]},
    }

    out = get_role_policies(CRED, "r")

    assert mock_iam.get_role_policy.call_args_list == [
        call(RoleName="r", PolicyName="p1"),
        call(RoleName="r", PolicyName="p2"),
    ]
    mock_iam.get_paginator.assert_called_once_with("list_role_policies")
    assert [(p["role-name"], p["policy-name"]) for p in out] == [("r", "p1"), ("r", "p2")]
    assert json.loads(out[1]["policy-document"]) == {"Statement": [{"Sid": "p2"}]}


def test_list_roles_collects_every_page(mock_iam):
    mock_iam.get_paginator.return_value = _pages(
        "Roles", [{"RoleName": "a"}], [{"RoleName": "b"}, {"RoleName": "c"}]
    )
    assert [r["name"] for r in list_roles(CRED)] == ["a", "b", "c"]


def test_delete_role_policy_sends_only_names(mock_iam):
    delete_role_policy(CRED, {"role-name": "r", "policy-name": "p"})
    mock_iam.delete_role_policy.assert_called_once_with(RoleName="r", PolicyName="p")


def test_create_instance_profile_default_path(mock_iam):
    mock_iam.create_instance_profile.return_value = {
        "InstanceProfile": {"InstanceProfileName": "web", "Roles": []}
    }
    out = create_instance_profile(CRED, "web")
    mock_iam.create_instance_profile.assert_called_once_with(
        InstanceProfileName="web", Path="/"
    )
    assert out["name"] == "web"


def test_add_and_remove_role_from_instance_profile():
    client = MagicMock()
    wrapper = IAMClient(CRED, client=client)

    assert wrapper.add_role_to_instance_profile("role", "profile") is None
    wrapper.remove_role_from_instance_profile("role", "profile")

    client.add_role_to_instance_profile.assert_called_once_with(
        RoleName="role", InstanceProfileName="profile"
    )
    client.remove_role_from_instance_profile.assert_called_once_with(
        RoleName="role", InstanceProfileName="profile"
    )


def test_service_errors_propagate_unchanged():
    client = MagicMock()
    error = ClientError(
        {"Error": {"Code": "NoSuchEntity", "Message": "missing", "Type": "Sender"}},
        "DeleteRole",
    )
    client.delete_role.side_effect = error
    with pytest.raises(ClientError) as exc:
        IAMClient(CRED, client=client).delete_role("missing")
    assert exc.value is error


def test_missing_credentials_are_translated():
    client = MagicMock()
    client.delete_instance_profile.side_effect = botocore.exceptions.NoCredentialsError()
    with pytest.raises(CredentialsNotFound):
        IAMClient(client=client).delete_instance_profile("web")


def test_connection_failures_are_translated():
    client = MagicMock()
    client.get_instance_profile.side_effect = botocore.exceptions.EndpointConnectionError(
        endpoint_url="https://iam.example.com"
    )
    with pytest.raises(ServiceUnavailable):
        IAMClient(client=client).get_instance_profile("web")


def test_functional_calls_share_a_client(mock_iam, monkeypatch):
    built = []
    monkeypatch.setattr(clients, "_factory", lambda cred: built.append(cred) or mock_iam)
    mock_iam.get_paginator.return_value = _pages("Roles", [])
    list_roles(CRED)
    list_roles(CRED)
    assert len(built) == 1


def test_cli_list_role_policies(mock_iam, aws_env, capsys):
    mock_iam.get_paginator.return_value = _pages("PolicyNames", ["p1", "p2"])
    assert main(["list-role-policies", "r"]) == 0
    assert json.loads(capsys.readouterr().out) == ["p1", "p2"]


def test_cli_prints_decoded_service_error(mock_iam, aws_env, capsys):
    mock_iam.get_instance_profile.side_effect = ClientError(
        {
            "Error": {"Code": "NoSuchEntity", "Message": "missing", "Type": "Sender"},
            "ResponseMetadata": {"HTTPStatusCode": 404},
        },
        "GetInstanceProfile",
    )
    assert main(["get-instance-profile", "web"]) == 1
    err = json.loads(capsys.readouterr().err)
    assert err["error-code"] == "NoSuchEntity"
    assert err["status-code"] == 404


def test_facade_exposes_every_operation():
    names = set(dir(iam))
    for name in (
        "list_roles",
        "create_role",
        "get_role_policies",
        "create_instance_profile",
        "remove_role_from_instance_profile",
        "decode_exception",
    ):
        assert name in names
    assert iam.list_roles is list_roles


def test_translated_failures_are_logged(package_logs):
    client = MagicMock()
    client.delete_role.side_effect = botocore.exceptions.NoCredentialsError()
    client.get_instance_profile.side_effect = botocore.exceptions.EndpointConnectionError(
        endpoint_url="https://iam.example.com"
    )

    with pytest.raises(CredentialsNotFound):
        IAMClient(client=client).delete_role("r")
    with pytest.raises(ServiceUnavailable):
        IAMClient(client=client).get_instance_profile("web")

    warnings = [r for r in package_logs.records if r.levelname == "WARNING"]
    assert len(warnings) == 2
    assert "DeleteRole" in warnings[0].getMessage()
    assert "GetInstanceProfile" in warnings[1].getMessage()


def test_service_errors_are_not_logged_as_warnings(package_logs):
    client = MagicMock()
    client.delete_role.side_effect = ClientError(
        {"Error": {"Code": "NoSuchEntity", "Message": "missing"}}, "DeleteRole"
    )
    with pytest.raises(ClientError):
        IAMClient(client=client).delete_role("missing")
    assert [r for r in package_logs.records if r.levelname == "WARNING"] == []


def test_cli_endpoint_reaches_credentials(mock_iam, aws_env, monkeypatch, capsys):
    built = []
    monkeypatch.setattr(clients, "_factory", lambda cred: built.append(cred) or mock_iam)
    mock_iam.get_paginator.return_value = _pages("Roles", [])

    assert main(["--endpoint", "iam.example.com", "list-roles"]) == 0

    assert built[0].endpoint == "iam.example.com"
    assert built[0].access_key == "testing"
    assert json.loads(capsys.readouterr().out) == []


def test_cli_list_roles(mock_iam, aws_env, capsys):
    mock_iam.get_paginator.return_value = _pages(
        "Roles", [{"RoleId": "AROA1", "RoleName": "a", "Arn": "arn:a", "Path": "/"}]
    )
    assert main(["list-roles"]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out == [
        {
            "id": "AROA1",
            "name": "a",
            "arn": "arn:a",
            "assume-role-policy-document": None,
            "created-date": None,
            "path": "/",
        }
    ]
    mock_iam.get_paginator.assert_called_once_with("list_roles")


def test_cli_get_role_policies(mock_iam, aws_env, capsys):
    mock_iam.get_paginator.return_value = _pages("PolicyNames", ["p1"])
    mock_iam.get_role_policy.return_value = {
        "RoleName": "r",
        "PolicyName": "p1",
        "PolicyDocument": {"Statement": []},
    }
    assert main(["get-role-policies", "r"]) == 0
    out = json.loads(capsys.readouterr().out)
    assert [(p["role-name"], p["policy-name"]) for p in out] == [("r", "p1")]
    assert json.loads(out[0]["policy-document"]) == {"Statement": []}


def test_cli_list_instance_profiles(mock_iam, aws_env, capsys):
    mock_iam.get_paginator.return_value = _pages(
        "InstanceProfiles",
        [{"InstanceProfileName": "web", "Roles": [{"RoleName": "a"}]}],
    )
    assert main(["list-instance-profiles"]) == 0
    out = json.loads(capsys.readouterr().out)
    assert [p["name"] for p in out] == ["web"]
    assert [r["name"] for r in out[0]["roles"]] == ["a"]


def test_cli_get_instance_profile(mock_iam, aws_env, capsys):
    mock_iam.get_instance_profile.return_value = {
        "InstanceProfile": {"InstanceProfileName": "web", "InstanceProfileId": "AIPA1"}
    }
    assert main(["get-instance-profile", "web"]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out["name"] == "web"
    assert out["id"] == "AIPA1"
    mock_iam.get_instance_profile.assert_called_once_with(InstanceProfileName="web")


def test_cli_library_error_exits_2(aws_env, monkeypatch, capsys):
    def no_credentials(cred):
        raise CredentialsNotFound("no credentials")

    monkeypatch.setattr(clients, "_factory", no_credentials)
    assert main(["list-roles"]) == 2
    assert "no credentials" in capsys.readouterr().err


def test_cli_unexpected_error_exits_3(aws_env, monkeypatch, capsys):
    def broken(cred):
        raise RuntimeError("boom")

    monkeypatch.setattr(clients, "_factory", broken)
    assert main(["list-instance-profiles"]) == 3
    assert "Unexpected error: boom" in capsys.readouterr().err
