"""
Deploy-finished hook: trigger every Jenkins job configured on the stage.
"""

import asyncio
import logging
import re
import xml.etree.ElementTree as ET

from jenkins_common.models import CONFIG_ERROR, Deploy, JenkinsJob, Stage
from jenkins_common.repository import JenkinsJobRepository

from .build import JenkinsBuildTrigger
from .exceptions import JenkinsError

logger = logging.getLogger(__name__)

_JOB_NAME_SEPARATOR = re.compile(r", ?")


def job_names(stage: Stage) -> list[str]:
    """Job names listed on a stage, e.g. "build-a, build-b" -> ["build-a", "build-b"]."""
    raw = (stage.jenkins_job_names or "").strip()
    if not raw:
        return []
    return [name for name in _JOB_NAME_SEPARATOR.split(raw) if name]


class JenkinsDeployHook:
    """
    Triggers the Jenkins jobs of a finished deploy and records each attempt.

    Jobs are triggered one after the other. Every job gets exactly one record,
    and a failure on one job does not stop the following ones.
    """

    def __init__(
        self,
        trigger: JenkinsBuildTrigger,
        repository: JenkinsJobRepository,
        enabled: bool = True,
    ):
        self.trigger = trigger
        self.repository = repository
        self.enabled = enabled

    async def deployed(self, deploy: Deploy) -> list[JenkinsJob]:
        if not deploy.succeeded:
            logger.debug(f"Deploy {deploy.id} did not succeed, not triggering Jenkins")
            return []
        if not self.enabled:
            logger.warning("JENKINS_URL is not set, not triggering Jenkins jobs")
            return []

        records = []
        for job_name in job_names(deploy.stage):
            record = await self._trigger(job_name, deploy)
            records.append(await self.repository.create_jenkins_job(record))
        return records

    async def _trigger(self, job_name: str, deploy: Deploy) -> JenkinsJob:
        try:
            # The Jenkins client blocks while the build waits in the queue
            outcome = await asyncio.to_thread(self.trigger.build, job_name, deploy)
        except (JenkinsError, ET.ParseError) as e:
            logger.error(
                f"Could not configure Jenkins job '{job_name}' for deploy {deploy.id}: {e}",
                exc_info=True,
            )
            return JenkinsJob.failed(
                deploy.id,
                job_name,
                CONFIG_ERROR,
                f"Problem while configuring '{job_name}'.  {type(e).__name__} {e}",
            )
        return JenkinsJob.from_outcome(deploy.id, outcome)
