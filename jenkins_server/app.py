import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel, Field

from jenkins_common.models import Commit, Deploy, DeployUser, Stage
from jenkins_common.repository import JenkinsJobRepository
from jenkins_integration import (
    JenkinsClient,
    JenkinsDeployHook,
    JenkinsError,
    Settings,
    build_hook,
)
from jenkins_integration.build import JenkinsBuildStatus
from jenkins_persistence.sqlite_repository import SQLiteJenkinsJobRepository

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Global instances (initialized at startup)
repository: JenkinsJobRepository | None = None
client: JenkinsClient | None = None
hook: JenkinsDeployHook | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI app.

    Handles startup and shutdown events:
    - Startup: Read settings, open the database and build the Jenkins components
    - Shutdown: Close database connections
    """
    global repository, client, hook

    settings = Settings.from_env()
    repository = SQLiteJenkinsJobRepository(settings.db_path)
    await repository.initialize()

    client = JenkinsClient.from_settings(settings)
    hook = build_hook(settings, repository, client=client)
    if not settings.is_configured:
        logger.warning("JENKINS_URL is not set, deploys will not trigger Jenkins jobs")

    yield

    # Shutdown: Close repository connections
    if repository:
        await repository.close()


app = FastAPI(lifespan=lifespan)


def get_repository() -> JenkinsJobRepository:
    """
    Get the global repository instance.

    Raises:
        RuntimeError: If repository is not initialized
    """
    if repository is None:
        raise RuntimeError("Repository not initialized")
    return repository


def get_client() -> JenkinsClient:
    """
    Get the global Jenkins client.

    Raises:
        RuntimeError: If the client is not initialized
    """
    if client is None:
        raise RuntimeError("Jenkins client not initialized")
    return client


def get_hook() -> JenkinsDeployHook:
    """
    Get the global deploy hook.

    Raises:
        RuntimeError: If the hook is not initialized
    """
    if hook is None:
        raise RuntimeError("Deploy hook not initialized")
    return hook


class UserPayload(BaseModel):
    name: str
    email: str


class CommitPayload(BaseModel):
    sha: str
    author_email: str


class StagePayload(BaseModel):
    name: str
    jenkins_job_names: str = ""
    jenkins_autoconfig_buildparams: bool = False
    jenkins_email_committers: bool = False


class DeployPayload(BaseModel):
    """A finished deploy, as posted by the deploy tool."""

    id: int
    project_name: str
    stage: StagePayload
    reference: str
    commit: str
    user: UserPayload
    url: str
    tag: str | None = None
    buddy: UserPayload | None = None
    commits: list[CommitPayload] = Field(default_factory=list)
    succeeded: bool = True

    def to_deploy(self) -> Deploy:
        return Deploy(
            id=self.id,
            project_name=self.project_name,
            stage=Stage(**self.stage.model_dump()),
            reference=self.reference,
            commit=self.commit,
            user=DeployUser(**self.user.model_dump()),
            url=self.url,
            tag=self.tag,
            buddy=DeployUser(**self.buddy.model_dump()) if self.buddy else None,
            commits=[Commit(**c.model_dump()) for c in self.commits],
            succeeded=self.succeeded,
        )


@app.post("/deploys", status_code=201)
async def deploy_finished(
    payload: DeployPayload,
    deploy_hook: JenkinsDeployHook = Depends(get_hook),
) -> dict[str, Any]:
    """
    Trigger the Jenkins jobs of a finished deploy.

    Returns:
        Dictionary with one record per triggered job (empty when the deploy
        failed or the stage lists no jobs)
    """
    records = await deploy_hook.deployed(payload.to_deploy())
    return {"jenkins_jobs": [record.to_dict() for record in records]}


@app.get("/health")
async def health_check() -> dict[str, str]:
    """
    Health check endpoint.

    Returns:
        Dictionary with status="ok" if server is running
    """
    return {"status": "ok"}


@app.get("/deploys/{deploy_id}/jenkins-jobs")
async def list_deploy_jenkins_jobs(
    deploy_id: int,
    repo: JenkinsJobRepository = Depends(get_repository),
) -> list[dict[str, Any]]:
    """List the Jenkins job records created for a deploy."""
    records = await repo.list_jenkins_jobs(deploy_id=deploy_id)
    return [record.to_dict() for record in records]


@app.get("/jenkins-jobs/{jenkins_job_id}")
async def get_jenkins_job(
    jenkins_job_id: int,
    repo: JenkinsJobRepository = Depends(get_repository),
    jenkins: JenkinsClient = Depends(get_client),
) -> dict[str, Any]:
    """
    Get a Jenkins job record with the live result and url of its build.

    Raises:
        HTTPException: 404 if the record does not exist
        HTTPException: 502 if Jenkins fails to answer
    """
    record = await repo.get_jenkins_job(jenkins_job_id)

    if record is None:
        raise HTTPException(status_code=404, detail="Jenkins job not found")

    result = record.to_dict()
    if record.jenkins_job_id is not None:
        status = JenkinsBuildStatus(jenkins, record.name)
        try:
            details = await asyncio.to_thread(status.details, record.jenkins_job_id)
        except JenkinsError as e:
            raise HTTPException(status_code=502, detail=f"Jenkins error: {e}")
        result["result"] = details.get("result")
        result["url"] = details.get("url")
    return result
