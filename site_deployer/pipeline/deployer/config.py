"""Configuration and environment loader for the WordPress REST client.

This module provides WordPressConfig, which holds, validates and exposes all
connection settings required by the deploy pipeline: the target site, the
credentials used for HTTP Basic authentication, retry/backoff limits, the
per-request timeout, the URL addressing mode and an optional request-rate
ceiling.

Role in Architecture
--------------------
- Forms the boundary between process runtime/CI/developer environments and
  the pipeline's strongly-typed runtime config.
- Provides a single source of truth for the site URL, credentials, retries,
  timeouts and rate limiting.
- No business or client logic: only configuration loading, structuring, and validation.

Examples
--------
>>> from site_deployer.pipeline.deployer.config import WordPressConfig
>>> cfg = WordPressConfig("https://example.com", "admin", "abcd efgh")
>>> cfg.retry_attempts
0
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

import site_deployer.config as _project_config
from site_deployer.config import (
    DEFAULT_RETRY_ATTEMPTS,
    DEFAULT_RETRY_DELAY_MS,
    DEFAULT_TIMEOUT_MS,
)
from site_deployer.exceptions import ConfigurationError

_TRUTHY = {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(
            f"{name} must be an integer", context={"value": raw}
        ) from exc


@dataclass(frozen=True)
class WordPressConfig:
    r"""Connection settings for a WordPress site.

    Attributes
    ----------
    base_url : str
        Site root, e.g. ``https://example.com``. A trailing slash is tolerated.
    username : str
        WordPress user the application password belongs to.
    app_password : str
        Application password (spaces allowed, sent verbatim).
    retry_attempts : int
        Additional attempts after a 5xx or transport failure.
    retry_delay_ms : int
        Base delay for exponential backoff (``retry_delay_ms * 2**attempt``).
    timeout_ms : int
        Per-request timeout in milliseconds.
    use_query_string_routes : bool
        Address the API as ``/?rest_route=...`` instead of ``/wp-json/...``
        for sites without pretty permalinks.
    target_rpm : int | None
        Optional ceiling on requests per minute; ``None`` or ``0`` disables
        throttling.

    Notes
    -----
    Instances are immutable; build a new one to change any setting.
    """

    base_url: str
    username: str
    app_password: str
    retry_attempts: int = DEFAULT_RETRY_ATTEMPTS
    retry_delay_ms: int = DEFAULT_RETRY_DELAY_MS
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    use_query_string_routes: bool = False
    target_rpm: int | None = None

    def validate(self) -> None:
        """Raise ConfigurationError if a required setting is missing or invalid.

        Raises
        ------
        ConfigurationError
            If ``base_url``, ``username`` or ``app_password`` is empty, or a
            numeric limit is negative.
        """
        if not self.base_url:
            raise ConfigurationError("baseUrl is required")
        if not self.username:
            raise ConfigurationError("username is required")
        if not self.app_password:
            raise ConfigurationError("appPassword is required")
        if self.retry_attempts < 0:
            raise ConfigurationError(
                "retry_attempts must not be negative",
                context={"retry_attempts": self.retry_attempts},
            )
        if self.retry_delay_ms < 0:
            raise ConfigurationError(
                "retry_delay_ms must not be negative",
                context={"retry_delay_ms": self.retry_delay_ms},
            )
        if self.timeout_ms <= 0:
            raise ConfigurationError(
                "timeout_ms must be positive", context={"timeout_ms": self.timeout_ms}
            )

    @classmethod
    def from_env(cls, env_file: Path | None = None) -> WordPressConfig:
        r"""Build a validated configuration from environment variables.

        Reads ``WP_URL``, ``WP_USERNAME``, ``WP_APP_PASSWORD``,
        ``WP_USE_QUERY_ROUTES``, ``WP_RETRY_ATTEMPTS``, ``WP_RETRY_DELAY_MS``,
        ``WP_TIMEOUT_MS`` and ``WP_TARGET_RPM``. A ``.env`` file (the project
        one by default) is loaded first when present and its values win.

        Parameters
        ----------
        env_file : Path | None, optional
            Explicit dotenv file to load instead of the project ``.env``.

        Returns
        -------
        WordPressConfig
            A validated configuration.

        Raises
        ------
        ConfigurationError
            If a required variable is missing or a numeric one is malformed.

        Examples
        --------
        >>> import os
        >>> os.environ.update(WP_URL="https://x", WP_USERNAME="u", WP_APP_PASSWORD="p")
        >>> WordPressConfig.from_env().base_url
        'https://x'
        """
        # Resolve the project env file through the module so tests can
        # monkeypatch ``site_deployer.config.ENV_FILE``.
        env_path = Path(env_file) if env_file else Path(_project_config.ENV_FILE)
        if env_path.exists():
            load_dotenv(env_path, override=True)
        target_rpm = _env_int("WP_TARGET_RPM", 0)
        config = cls(
            base_url=os.getenv("WP_URL", ""),
            username=os.getenv("WP_USERNAME", ""),
            app_password=os.getenv("WP_APP_PASSWORD", ""),
            retry_attempts=_env_int("WP_RETRY_ATTEMPTS", DEFAULT_RETRY_ATTEMPTS),
            retry_delay_ms=_env_int("WP_RETRY_DELAY_MS", DEFAULT_RETRY_DELAY_MS),
            timeout_ms=_env_int("WP_TIMEOUT_MS", DEFAULT_TIMEOUT_MS),
            use_query_string_routes=os.getenv("WP_USE_QUERY_ROUTES", "").strip().lower()
            in _TRUTHY,
            target_rpm=target_rpm or None,
        )
        config.validate()
        return config
