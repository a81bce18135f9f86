"""
config.py — Application Settings
=================================
Everything tunable about the HTTP service, read from TRAVSPAN_* environment
variables once at startup.

    TRAVSPAN_HOST                    bind address            (127.0.0.1)
    TRAVSPAN_PORT                    bind port               (5000)
    TRAVSPAN_DEBUG                   Flask debug mode        (false)
    TRAVSPAN_LOG_LEVEL               root log level          (INFO)
    TRAVSPAN_SECRET_KEY              session signing key     (random per process)
    TRAVSPAN_MAX_STEPS_PER_REQUEST   cap for /api/step/run   (10000)
    TRAVSPAN_MAX_SESSIONS            workspaces kept in memory (256)
"""

import os
import secrets
from dataclasses import dataclass
from typing import Mapping, Optional

ENV_PREFIX = "TRAVSPAN_"

DEFAULT_ALGORITHM = "bfs"
DEFAULT_HEURISTIC = "haversine"


def _env(env: Mapping[str, str], name: str, default: str) -> str:
    return env.get(ENV_PREFIX + name, default)


def as_bool(value) -> bool:
    """Parse an env string or a JSON value; "false" and "0" are False."""
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    host:       str  = "127.0.0.1"
    port:       int  = 5000
    debug:      bool = False
    log_level:  str  = "INFO"
    secret_key: str  = ""
    max_steps_per_request: int = 10000
    max_sessions:          int = 256

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from `env` (defaults to os.environ)."""
        if env is None:
            env = os.environ
        try:
            port      = int(_env(env, "PORT", "5000"))
            max_steps = int(_env(env, "MAX_STEPS_PER_REQUEST", "10000"))
            sessions  = int(_env(env, "MAX_SESSIONS", "256"))
        except ValueError as exc:
            raise ValueError(f"Bad {ENV_PREFIX}* integer setting: {exc}") from None
        if max_steps < 1:
            raise ValueError(f"{ENV_PREFIX}MAX_STEPS_PER_REQUEST must be positive, got {max_steps}")
        if sessions < 1:
            raise ValueError(f"{ENV_PREFIX}MAX_SESSIONS must be positive, got {sessions}")

        return cls(
            host=_env(env, "HOST", "127.0.0.1"),
            port=port,
            debug=as_bool(_env(env, "DEBUG", "false")),
            log_level=_env(env, "LOG_LEVEL", "INFO").upper(),
            secret_key=_env(env, "SECRET_KEY", "") or secrets.token_hex(32),
            max_steps_per_request=max_steps,
            max_sessions=sessions,
        )
