"""
Data models for the deploy -> Jenkins integration.

These models represent the domain objects used throughout the application,
independent of the Jenkins transport and of the underlying storage mechanism.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

# Size of the error column on stored Jenkins job records
ERROR_COLUMN_LIMIT = 255

STARTUP_ERROR = "STARTUP_ERROR"
CONFIG_ERROR = "CONFIG_ERROR"


@dataclass
class DeployUser:
    """A person taking part in a deploy (the deployer or their buddy)."""

    name: str
    email: str


@dataclass
class Commit:
    """A commit included in the deployed changeset."""

    sha: str
    author_email: str


@dataclass
class Stage:
    """
    The deploy stage and its Jenkins settings.

    jenkins_job_names is the raw comma separated list configured on the stage.
    """

    name: str
    jenkins_job_names: str = ""
    jenkins_autoconfig_buildparams: bool = False
    jenkins_email_committers: bool = False


@dataclass
class Deploy:
    """
    Represents a finished deploy of a project to a stage.

    Only the fields the Jenkins integration reads are modelled here.
    """

    id: int
    project_name: str
    stage: Stage
    reference: str  # Branch or tag requested by the deployer
    commit: str  # Resolved commit sha
    user: DeployUser
    url: str  # Link back to the deploy page
    tag: str | None = None
    buddy: DeployUser | None = None
    commits: list[Commit] = field(default_factory=list)
    succeeded: bool = True

    @property
    def stage_name(self) -> str:
        return self.stage.name


@dataclass(frozen=True)
class BuildStarted:
    """Jenkins accepted the build and it left the queue."""

    job_name: str
    run_id: int


@dataclass(frozen=True)
class BuildFailed:
    """
    The build could not be started.

    kind is "timeout" when the build did not start within its budget,
    "api_error" for any other Jenkins API failure.
    """

    job_name: str
    kind: str
    message: str


BuildOutcome = BuildStarted | BuildFailed


@dataclass
class JenkinsJob:
    """
    Record of one attempt to trigger a Jenkins job for a deploy.

    Either jenkins_job_id is set (the Jenkins build number), or status and
    error describe why the build never started.
    """

    name: str
    deploy_id: int
    jenkins_job_id: int | None = None
    status: str | None = None
    error: str | None = None
    id: int | None = None  # Assigned by the repository
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def from_outcome(cls, deploy_id: int, outcome: BuildOutcome) -> "JenkinsJob":
        """Build the record for a trigger attempt, truncating long errors."""
        if isinstance(outcome, BuildStarted):
            return cls(
                name=outcome.job_name,
                deploy_id=deploy_id,
                jenkins_job_id=outcome.run_id,
            )
        return cls.failed(deploy_id, outcome.job_name, STARTUP_ERROR, outcome.message)

    @classmethod
    def failed(
        cls, deploy_id: int, job_name: str, status: str, message: str
    ) -> "JenkinsJob":
        return cls(
            name=job_name,
            deploy_id=deploy_id,
            status=status,
            error=message[:ERROR_COLUMN_LIMIT],
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert record to dictionary format (for API responses)."""
        return {
            "id": self.id,
            "name": self.name,
            "deploy_id": self.deploy_id,
            "jenkins_job_id": self.jenkins_job_id,
            "status": self.status,
            "error": self.error,
            "created_at": self.created_at.isoformat(),
        }
