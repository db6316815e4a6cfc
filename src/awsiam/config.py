# src/awsiam/config.py
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional, cast

from dotenv import load_dotenv

from .utils import getenv_str

# --- tomllib for 3.11+, tomli for 3.9/3.10 ---
try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:  # Python 3.9–3.10
    import tomli as tomllib

# IAM is a global service; any region reaches it.
DEFAULT_REGION = "us-east-1"


def config_path() -> Path:
    return Path.home() / ".config" / "awsiam" / "config.toml"


def load_env_files() -> None:
    """Load environment variables from a .env if present (no-op if absent)."""
    load_dotenv()


def load_toml_config(path: Optional[Path] = None) -> Dict[str, str]:
    """Read the [aws] section of the config file and return upper-cased keys."""
    cfg_path = path or config_path()
    if cfg_path.exists():
        with cfg_path.open("rb") as f:
            data = cast("dict[str, Any]", tomllib.load(f))
        section = cast("dict[str, Any]", data.get("aws", {}))
        return {k.upper(): str(v) for k, v in section.items()}
    return {}


def resolved_aws_settings(path: Optional[Path] = None) -> Dict[str, Optional[str]]:
    """
    Resolve AWS settings from env/.env/config.toml.
    Returns a dict with AWS_* keys (values may be None, except the region).
    """
    load_env_files()
    toml_cfg = load_toml_config(path)

    access_key = getenv_str("AWS_ACCESS_KEY_ID", toml_cfg.get("AWS_ACCESS_KEY_ID"))
    secret_key = getenv_str(
        "AWS_SECRET_ACCESS_KEY", toml_cfg.get("AWS_SECRET_ACCESS_KEY")
    )
    session_token = getenv_str("AWS_SESSION_TOKEN", toml_cfg.get("AWS_SESSION_TOKEN"))
    region = getenv_str(
        "AWS_DEFAULT_REGION",
        getenv_str("AWS_REGION", toml_cfg.get("AWS_DEFAULT_REGION")),
    )
    endpoint = getenv_str("AWS_IAM_ENDPOINT", toml_cfg.get("AWS_IAM_ENDPOINT"))

    return {
        "AWS_ACCESS_KEY_ID": access_key,
        "AWS_SECRET_ACCESS_KEY": secret_key,
        "AWS_SESSION_TOKEN": session_token,
        "AWS_DEFAULT_REGION": region or DEFAULT_REGION,
        "AWS_IAM_ENDPOINT": endpoint,
    }
