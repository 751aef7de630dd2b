"""
Jenkins Common module.

This module contains the shared domain models and interfaces used across
the integration components (integration core, persistence, server, admin).

The common module has no dependencies on other jenkins_* modules, making it
a pure domain layer that can be imported by any component.
"""

from .models import (
    ERROR_COLUMN_LIMIT,
    BuildFailed,
    BuildOutcome,
    BuildStarted,
    Commit,
    Deploy,
    DeployUser,
    JenkinsJob,
    Stage,
)
from .repository import JenkinsJobRepository

__all__ = [
    "ERROR_COLUMN_LIMIT",
    "BuildFailed",
    "BuildOutcome",
    "BuildStarted",
    "Commit",
    "Deploy",
    "DeployUser",
    "JenkinsJob",
    "JenkinsJobRepository",
    "Stage",
]
