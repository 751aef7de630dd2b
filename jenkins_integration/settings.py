"""
Process-wide settings for the Jenkins integration.

Read once from the environment at startup and passed to the components
that need them.

Environment variables:
- JENKINS_URL: Base url of the Jenkins server
- JENKINS_USERNAME: Jenkins user the builds are started as
- JENKINS_API_KEY: API token of that user
- GOOGLE_DOMAIN: Only notify addresses in this domain (e.g. "@example.com")
- JENKINS_DB_PATH: SQLite file for Jenkins job records (default: jenkins_jobs.db)
- JENKINS_CONFIG_CACHE_TTL: Seconds a fetched job config stays fresh (default: 7 days)
- JENKINS_CONFIG_RACE_TTL: Seconds a stale config may still be served while
  it is reloaded (default: 5 minutes)
- JENKINS_REQUEST_TIMEOUT: Seconds per HTTP request to Jenkins (default: 30)
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass

DEFAULT_CONFIG_CACHE_TTL = 7 * 24 * 60 * 60
DEFAULT_CONFIG_RACE_TTL = 5 * 60
DEFAULT_REQUEST_TIMEOUT = 30.0


@dataclass(frozen=True)
class Settings:
    jenkins_url: str = ""
    username: str = ""
    api_key: str = ""
    email_domain: str | None = None
    db_path: str = "jenkins_jobs.db"
    config_cache_ttl: float = DEFAULT_CONFIG_CACHE_TTL
    config_race_ttl: float = DEFAULT_CONFIG_RACE_TTL
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from environment variables."""
        env = os.environ if environ is None else environ
        return cls(
            jenkins_url=env.get("JENKINS_URL", "").rstrip("/"),
            username=env.get("JENKINS_USERNAME", ""),
            api_key=env.get("JENKINS_API_KEY", ""),
            email_domain=env.get("GOOGLE_DOMAIN") or None,
            db_path=env.get("JENKINS_DB_PATH", "jenkins_jobs.db"),
            config_cache_ttl=float(
                env.get("JENKINS_CONFIG_CACHE_TTL", DEFAULT_CONFIG_CACHE_TTL)
            ),
            config_race_ttl=float(
                env.get("JENKINS_CONFIG_RACE_TTL", DEFAULT_CONFIG_RACE_TTL)
            ),
            request_timeout=float(
                env.get("JENKINS_REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT)
            ),
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.jenkins_url)
