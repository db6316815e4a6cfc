from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Union

import boto3

from ..config import resolved_aws_settings
from ..logger_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Credentials:
    """
    Credentials passed as the first argument to every IAM operation.

    Both keys absent means the boto3 default chain (env, profile, instance
    role) is used. ``endpoint`` overrides the IAM API endpoint.
    """

    access_key: Optional[str] = None
    secret_key: Optional[str] = None
    endpoint: Optional[str] = None
    session_token: Optional[str] = None

    @property
    def is_explicit(self) -> bool:
        return bool(self.access_key and self.secret_key)

    @staticmethod
    def from_mapping(m: Mapping[str, Any]) -> "Credentials":
        return Credentials(
            access_key=m.get("access-key"),
            secret_key=m.get("secret-key"),
            endpoint=m.get("endpoint"),
            session_token=m.get("session-token"),
        )

    @staticmethod
    def from_env() -> "Credentials":
        cfg = resolved_aws_settings()
        return Credentials(
            access_key=cfg.get("AWS_ACCESS_KEY_ID"),
            secret_key=cfg.get("AWS_SECRET_ACCESS_KEY"),
            endpoint=cfg.get("AWS_IAM_ENDPOINT"),
            session_token=cfg.get("AWS_SESSION_TOKEN"),
        )

    def __repr__(self) -> str:
        key = f"{self.access_key[:4]}..." if self.access_key else None
        return f"Credentials(access_key={key!r}, endpoint={self.endpoint!r})"


CredentialsLike = Union[Credentials, Mapping[str, Any], None]


def as_credentials(cred: CredentialsLike) -> Credentials:
    if cred is None:
        return Credentials()
    if isinstance(cred, Credentials):
        return cred
    return Credentials.from_mapping(cred)


def endpoint_url(endpoint: Optional[str]) -> Optional[str]:
    """Accept bare hosts such as ``iam.amazonaws.com`` as well as full URLs."""
    if not endpoint:
        return None
    return endpoint if "://" in endpoint else f"https://{endpoint}"


def create_iam_client(cred: Credentials) -> Any:
    """Build a boto3 IAM client for a credentials value."""
    cfg = resolved_aws_settings()
    if cred.is_explicit:
        session = boto3.session.Session(
            aws_access_key_id=cred.access_key,
            aws_secret_access_key=cred.secret_key,
            aws_session_token=cred.session_token or None,
            region_name=cfg.get("AWS_DEFAULT_REGION"),
        )
    else:
        session = boto3.session.Session(region_name=cfg.get("AWS_DEFAULT_REGION"))
    logger.debug("creating IAM client for %r", cred)
    return session.client("iam", endpoint_url=endpoint_url(cred.endpoint))


class ClientCache:
    """
    Process-wide memo of one client per distinct Credentials.

    Construction happens under a lock so concurrent first use for the same
    key builds a single client.
    """

    def __init__(self, factory: Callable[[Credentials], Any] = create_iam_client) -> None:
        self._factory = factory
        self._clients: Dict[Credentials, Any] = {}
        self._lock = threading.Lock()

    def get(self, cred: CredentialsLike) -> Any:
        key = as_credentials(cred)
        client = self._clients.get(key)
        if client is not None:
            return client
        with self._lock:
            client = self._clients.get(key)
            if client is None:
                client = self._factory(key)
                self._clients[key] = client
            return client

    def __len__(self) -> int:
        return len(self._clients)

    def clear(self) -> None:
        with self._lock:
            self._clients.clear()


clients = ClientCache()


def iam_client(cred: CredentialsLike) -> Any:
    """Return the memoized IAM client for ``cred``."""
    return clients.get(cred)
