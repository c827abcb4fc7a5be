"""Central configuration, constants, and runtime settings."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

# =============================================================================
# Linear Connection Settings
# =============================================================================
LINEAR_ENDPOINT = "https://api.linear.app/graphql"
LINEAR_TOKEN_ENV = "LINEAR_API_KEY"
TIMEZONE = "America/Sao_Paulo"

# Query result cache lifetime for the GraphQL client
LINEAR_CACHE_TTL_SECONDS: float = 300.0
LINEAR_REQUEST_TIMEOUT_SECONDS: float = 30.0
CYCLES_PAGE_SIZE: int = 20

# =============================================================================
# Persisted local settings (API token)
# =============================================================================
SETTINGS_DIR = Path(os.environ.get("LINEAR_TIME_HOME", Path.home() / ".linear_time"))
SETTINGS_FILE_NAME = "settings.yaml"
SETTINGS_TOKEN_KEY = "linear_api_token"

# =============================================================================
# Timer Store
# =============================================================================
TIME_LOGS_COLLECTION = "time_logs"
USER_ESTIMATES_COLLECTION = "user_estimates"
DEFAULT_DB_PATH = SETTINGS_DIR / "timer_store.sqlite3"

# =============================================================================
# Workflow / Cycle labels
# =============================================================================
# Issues in this state are never fetched
EXCLUDED_STATE_NAME = "Canceled"

DONE_STATE_NAMES: frozenset[str] = frozenset({"done", "completed", "merged"})

NO_CYCLE_LABEL = "No Cycle"
CYCLE_LABEL_TEMPLATE = "Cycle {number}"

CYCLE_CURRENT = "current"
CYCLE_NEXT = "next"
CYCLE_BACKLOG = "backlog"

# =============================================================================
# Identity
# =============================================================================
ALLOWED_DOMAIN_ENV = "ALLOWED_EMAIL_DOMAIN"
AUTH_PROVIDER = "google"


class StartPolicy(str, Enum):
    """What ``start_timer`` does when the user already has an open log."""

    REJECT_IF_ACTIVE = "reject"
    AUTO_STOP = "auto_stop"

    @classmethod
    def parse(cls, value: str | None) -> StartPolicy:
        if not value:
            return cls.REJECT_IF_ACTIVE
        text = str(value).strip().lower().replace("-", "_")
        for policy in cls:
            if text in {policy.value, policy.name.lower()}:
                return policy
        raise ValueError(f"Unknown start policy: {value!r}")


@dataclass(slots=True)
class AppSettings:
    start_policy: StartPolicy = StartPolicy.REJECT_IF_ACTIVE
    allowed_email_domain: str | None = None
    db_path: Path = field(default_factory=lambda: DEFAULT_DB_PATH)

    @classmethod
    def from_env(cls, environ=None) -> AppSettings:
        env = os.environ if environ is None else environ
        db_path = env.get("LINEAR_TIME_DB_PATH")
        return cls(
            start_policy=StartPolicy.parse(env.get("LINEAR_TIME_START_POLICY")),
            allowed_email_domain=env.get(ALLOWED_DOMAIN_ENV) or None,
            db_path=Path(db_path) if db_path else DEFAULT_DB_PATH,
        )
