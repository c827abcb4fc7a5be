"""Persist and resolve the Linear API token (YAML file with env fallback)."""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml

from .config import LINEAR_TOKEN_ENV, SETTINGS_DIR, SETTINGS_FILE_NAME, SETTINGS_TOKEN_KEY

logger = logging.getLogger(__name__)


def settings_path(base_path: str | Path | None = None) -> Path:
    return Path(base_path or SETTINGS_DIR) / SETTINGS_FILE_NAME


def load_settings(base_path: str | Path | None = None) -> dict:
    path = settings_path(base_path)
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text()) or {}
    except (OSError, yaml.YAMLError) as exc:
        logger.warning("Ignoring unreadable settings file %s: %s", path, exc)
        return {}
    return data if isinstance(data, dict) else {}


def save_token(token: str, base_path: str | Path | None = None) -> Path:
    path = settings_path(base_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = load_settings(base_path)
    data[SETTINGS_TOKEN_KEY] = token.strip()
    path.write_text(yaml.safe_dump(data, sort_keys=True))
    logger.debug("Saved Linear token to %s", path)
    return path


def resolve_token(base_path: str | Path | None = None, environ=None) -> str | None:
    """Return the persisted token, falling back to ``LINEAR_API_KEY``."""
    stored = load_settings(base_path).get(SETTINGS_TOKEN_KEY)
    if stored:
        return str(stored)
    env = os.environ if environ is None else environ
    return env.get(LINEAR_TOKEN_ENV) or None
