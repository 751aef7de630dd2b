"""
Starting Jenkins builds for a deploy and looking up how they went.
"""

import logging
from typing import Any

from jenkins_common.models import BuildFailed, BuildOutcome, BuildStarted, Deploy

from .client import JenkinsClient
from .exceptions import NOT_FOUND_MESSAGE, BuildStartTimeout, JenkinsApiError, JenkinsNotFound
from .job_config import BUILD_PARAMETERS_PREFIX, JobConfigurator
from .notify import notify_emails

logger = logging.getLogger(__name__)

BUILD_START_TIMEOUT = 60


def build_parameters(deploy: Deploy, emails: str) -> dict[str, Any]:
    """The parameters every deploy-triggered build receives, unprefixed."""
    return {
        "buildStartedBy": deploy.user.name,
        "originatedFrom": f"{deploy.project_name}_{deploy.stage_name}_{deploy.reference}",
        "commit": deploy.commit,
        "tag": deploy.tag or "",
        "deployUrl": deploy.url,
        "emails": emails,
    }


class JenkinsBuildTrigger:
    """
    Starts one Jenkins job for a deploy.

    Every call produces exactly one BuildOutcome; failures to start the build
    are returned, not raised, so the caller can always record the attempt.
    Errors while auto-configuring the job are raised.
    """

    def __init__(
        self,
        client: JenkinsClient,
        configurator: JobConfigurator,
        email_domain: str | None = None,
        build_start_timeout: float = BUILD_START_TIMEOUT,
    ):
        self.client = client
        self.configurator = configurator
        self.email_domain = email_domain
        self.build_start_timeout = build_start_timeout

    def build(self, job_name: str, deploy: Deploy) -> BuildOutcome:
        params = build_parameters(deploy, notify_emails(deploy, self.email_domain))

        if deploy.stage.jenkins_autoconfig_buildparams:
            self.configurator.configure_job(job_name, deploy.project_name, deploy.stage_name)
            params = {BUILD_PARAMETERS_PREFIX + key: value for key, value in params.items()}

        try:
            run_id = self.client.build_job(
                job_name, params, build_start_timeout=self.build_start_timeout
            )
        except BuildStartTimeout as e:
            message = (
                f"Jenkins '{job_name}' build failed to start in a timely manner.  "
                f"{type(e).__name__} {e}"
            )
            logger.warning(message)
            return BuildFailed(job_name, "timeout", message)
        except JenkinsApiError as e:
            message = (
                f"Problem while waiting for '{job_name}' to start.  {type(e).__name__} {e}"
            )
            logger.warning(message)
            return BuildFailed(job_name, "api_error", message)

        logger.info(f"Started Jenkins build {job_name} #{run_id} for deploy {deploy.id}")
        return BuildStarted(job_name, run_id)


class JenkinsBuildStatus:
    """
    Result and url of builds of one job.

    Build details are fetched once per run id and kept on the instance only.
    """

    def __init__(self, client: JenkinsClient, job_name: str):
        self.client = client
        self.job_name = job_name
        self._responses: dict[int, dict[str, Any]] = {}

    def details(self, run_id: int) -> dict[str, Any]:
        if run_id not in self._responses:
            try:
                response = self.client.get_build_details(self.job_name, run_id)
            except JenkinsNotFound as e:
                response = {"result": str(e) or NOT_FOUND_MESSAGE, "url": "#"}
            self._responses[run_id] = response
        return self._responses[run_id]

    def status(self, run_id: int) -> str | None:
        """SUCCESS, FAILURE, ABORTED..., None while the build runs."""
        return self.details(run_id).get("result")

    def url(self, run_id: int) -> str | None:
        return self.details(run_id).get("url")
