"""
Jenkins Integration module.

Drives an external Jenkins server on behalf of deploys: reconciles job
configs, starts builds and reads their status. The client, cache and
components are built explicitly at startup (see build_hook) and
handed to whoever needs them.
"""

from jenkins_common.repository import JenkinsJobRepository

from .build import JenkinsBuildStatus, JenkinsBuildTrigger
from .cache import ConfigCache
from .client import JenkinsClient
from .exceptions import (
    BuildStartTimeout,
    JenkinsApiError,
    JenkinsError,
    JenkinsNotFound,
    JenkinsTimeout,
)
from .hook import JenkinsDeployHook
from .job_config import JobConfigurator
from .settings import Settings


def build_cache(settings: Settings) -> ConfigCache:
    return ConfigCache(
        expires_in=settings.config_cache_ttl,
        race_condition_ttl=settings.config_race_ttl,
    )


def build_hook(
    settings: Settings,
    repository: JenkinsJobRepository,
    client: JenkinsClient | None = None,
) -> JenkinsDeployHook:
    """Wire the client, cache, configurator and trigger into a deploy hook."""
    client = client or JenkinsClient.from_settings(settings)
    configurator = JobConfigurator.build(client, build_cache(settings))
    trigger = JenkinsBuildTrigger(client, configurator, email_domain=settings.email_domain)
    return JenkinsDeployHook(trigger, repository, enabled=settings.is_configured)


__all__ = [
    "BuildStartTimeout",
    "ConfigCache",
    "JenkinsApiError",
    "JenkinsBuildStatus",
    "JenkinsBuildTrigger",
    "JenkinsClient",
    "JenkinsDeployHook",
    "JenkinsError",
    "JenkinsNotFound",
    "JenkinsTimeout",
    "JobConfigurator",
    "Settings",
    "build_cache",
    "build_hook",
]
