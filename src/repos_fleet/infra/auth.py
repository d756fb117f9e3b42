# GitHub token resolution and storage
#
# Lookup order for commands that talk to the GitHub API:
#   1. explicit --token value
#   2. GITHUB_TOKEN environment variable
#   3. system keyring (service "repos-fleet", account "github-token")
#   4. auth.json in the user config directory
#
# save_token() prefers the keyring and falls back to the config file when no
# keyring backend is usable.

import json
import os
import sys
from pathlib import Path
from typing import Dict, Optional, Tuple

import keyring
from keyring.errors import KeyringError

from ..errors import ConfigError
from .logger import log_warning

APP_NAME = "repos-fleet"
SERVICE_NAME = "repos-fleet"
ACCOUNT_NAME = "github-token"
TOKEN_ENV_VAR = "GITHUB_TOKEN"
AUTH_FILE = "auth.json"


def get_config_dir() -> Path:
    if os.name == "nt":
        base = os.environ.get("APPDATA") or os.environ.get("LOCALAPPDATA") or str(Path.home())
    elif sys.platform == "darwin":
        base = str(Path.home() / "Library" / "Application Support")
    else:
        base = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(base) / APP_NAME


def _get_auth_path() -> Path:
    return get_config_dir() / AUTH_FILE


def _load_auth_file() -> Dict[str, str]:
    auth_path = _get_auth_path()
    if not auth_path.exists():
        return {}
    try:
        data = json.loads(auth_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        log_warning(f"Ignoring unreadable {auth_path}: {exc}")
        return {}
    return data if isinstance(data, dict) else {}


def _save_auth_file(data: Dict[str, str]) -> None:
    auth_path = _get_auth_path()
    try:
        auth_path.parent.mkdir(parents=True, exist_ok=True)
        auth_path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to write {auth_path}: {exc}") from exc


def _load_token_from_keyring() -> Optional[str]:
    try:
        return keyring.get_password(SERVICE_NAME, ACCOUNT_NAME)
    except KeyringError:
        return None


def _load_token_from_file() -> Optional[str]:
    token = _load_auth_file().get("token")
    return token if isinstance(token, str) and token else None


def load_token() -> Tuple[Optional[str], str]:
    """Stored token and where it came from ("keyring", "file" or "none")."""
    token = _load_token_from_keyring()
    if token:
        return token, "keyring"

    token = _load_token_from_file()
    if token:
        return token, "file"
    return None, "none"


def resolve_token(explicit: Optional[str] = None) -> Optional[str]:
    if explicit:
        return explicit

    env_token = os.environ.get(TOKEN_ENV_VAR, "").strip()
    if env_token:
        return env_token

    token, _ = load_token()
    return token


def save_token(token: str) -> str:
    """Store the token, returning the storage used."""
    try:
        keyring.set_password(SERVICE_NAME, ACCOUNT_NAME, token)
    except KeyringError as exc:
        log_warning(f"Keyring unavailable ({exc}), storing token in {_get_auth_path()}")
    else:
        _delete_token_from_file()
        return "keyring"

    data = _load_auth_file()
    data["token"] = token
    _save_auth_file(data)
    return "file"


def _delete_token_from_file() -> None:
    data = _load_auth_file()
    if "token" in data:
        del data["token"]
        _save_auth_file(data)


def clear_token() -> None:
    try:
        keyring.delete_password(SERVICE_NAME, ACCOUNT_NAME)
    except KeyringError:
        pass
    _delete_token_from_file()
