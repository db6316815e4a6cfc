import logging
import os
from unittest.mock import MagicMock

import pytest

from awsiam.iam.credentials import clients


@pytest.fixture(autouse=True)
def reset_client_cache():
    clients.clear()
    yield
    clients.clear()


@pytest.fixture
def aws_env(monkeypatch):
    """Fake credentials so nothing can reach a real account."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    monkeypatch.delenv("AWS_IAM_ENDPOINT", raising=False)
    monkeypatch.delenv("AWS_PROFILE", raising=False)
    yield os.environ


@pytest.fixture
def mock_iam(monkeypatch):
    """Every client handed out by the cache is this mock."""
    client = MagicMock()
    monkeypatch.setattr(clients, "_factory", lambda cred: client)
    return client

@pytest.fixture
def package_logs(caplog):
    """The package logger does not propagate; hook caplog onto it directly."""
    logger = logging.getLogger("awsiam")
    logger.addHandler(caplog.handler)
    with caplog.at_level(logging.WARNING, logger="awsiam"):
        yield caplog
    logger.removeHandler(caplog.handler)
