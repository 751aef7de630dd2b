"""Shared fixtures for the Jenkins integration tests."""

import pytest

from jenkins_common.models import Commit, Deploy, DeployUser, Stage


def make_deploy(**overrides) -> Deploy:
    """Build a successful deploy of ProjectA to StageA, with overrides."""
    stage = overrides.pop(
        "stage",
        Stage(
            name="StageA",
            jenkins_job_names="build-a",
            jenkins_autoconfig_buildparams=False,
        ),
    )
    fields = dict(
        id=42,
        project_name="ProjectA",
        stage=stage,
        reference="v1.2.3",
        commit="abc123",
        tag="v1.2.3",
        user=DeployUser(name="Alice", email="alice@example.com"),
        url="https://deploy.example.com/projects/project-a/deploys/42",
        buddy=None,
        commits=[Commit(sha="abc123", author_email="carol@example.com")],
    )
    fields.update(overrides)
    return Deploy(**fields)


@pytest.fixture
def deploy():
    return make_deploy()


@pytest.fixture
def deploy_factory():
    return make_deploy
