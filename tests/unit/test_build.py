"""
Unit tests for jenkins_integration.build.

Tests the build trigger (parameters, auto-configuration, failure outcomes)
and the status poller with a mocked Jenkins client.
"""

from unittest.mock import Mock

import pytest

from jenkins_common.models import BuildFailed, BuildStarted, Stage
from jenkins_integration.build import (
    BUILD_START_TIMEOUT,
    JenkinsBuildStatus,
    JenkinsBuildTrigger,
    build_parameters,
)
from jenkins_integration.exceptions import (
    NOT_FOUND_MESSAGE,
    BuildStartTimeout,
    JenkinsApiError,
    JenkinsNotFound,
)


@pytest.fixture
def client():
    client = Mock()
    client.build_job = Mock(return_value=123)
    return client


@pytest.fixture
def configurator():
    configurator = Mock()
    configurator.configure_job = Mock(return_value=True)
    return configurator


@pytest.fixture
def trigger(client, configurator):
    return JenkinsBuildTrigger(client, configurator)


class TestBuildParameters:
    def test_parameters(self, deploy):
        """Test the parameter map sent with every build."""
        params = build_parameters(deploy, "alice@example.com")

        assert params == {
            "buildStartedBy": "Alice",
            "originatedFrom": "ProjectA_StageA_v1.2.3",
            "commit": "abc123",
            "tag": "v1.2.3",
            "deployUrl": "https://deploy.example.com/projects/project-a/deploys/42",
            "emails": "alice@example.com",
        }


class TestJenkinsBuildTrigger:
    """Test suite for JenkinsBuildTrigger."""

    def test_started_build(self, trigger, client, configurator, deploy):
        """Test that a started build returns its run id, unprefixed params."""
        outcome = trigger.build("build-a", deploy)

        assert outcome == BuildStarted("build-a", 123)
        configurator.configure_job.assert_not_called()
        job_name, params = client.build_job.call_args.args
        assert job_name == "build-a"
        assert params["buildStartedBy"] == "Alice"
        assert client.build_job.call_args.kwargs["build_start_timeout"] == BUILD_START_TIMEOUT

    def test_autoconfig_prefixes_params(self, trigger, client, configurator, deploy_factory):
        """Test that auto-configured stages reconcile the job and prefix params."""
        deploy = deploy_factory(
            stage=Stage(name="StageA", jenkins_autoconfig_buildparams=True)
        )

        trigger.build("build-a", deploy)

        configurator.configure_job.assert_called_once_with("build-a", "ProjectA", "StageA")
        params = client.build_job.call_args.args[1]
        assert set(params) == {
            "SAMSON_buildStartedBy",
            "SAMSON_originatedFrom",
            "SAMSON_commit",
            "SAMSON_tag",
            "SAMSON_deployUrl",
            "SAMSON_emails",
        }

    def test_timeout_returns_failure(self, trigger, client, deploy):
        """Test that a start timeout is reported, not raised."""
        client.build_job.side_effect = BuildStartTimeout("Build did not start within 60 seconds")

        outcome = trigger.build("build-a", deploy)

        assert isinstance(outcome, BuildFailed)
        assert outcome.kind == "timeout"
        assert "build-a" in outcome.message
        assert "failed to start in a timely manner" in outcome.message
        assert "BuildStartTimeout" in outcome.message

    def test_api_error_returns_failure(self, trigger, client, deploy):
        """Test that API errors are reported, not raised."""
        client.build_job.side_effect = JenkinsApiError("HTTP 500", status_code=500)

        outcome = trigger.build("build-a", deploy)

        assert isinstance(outcome, BuildFailed)
        assert outcome.kind == "api_error"
        assert outcome.message == (
            "Problem while waiting for 'build-a' to start.  JenkinsApiError HTTP 500"
        )

    def test_config_errors_propagate(self, trigger, client, configurator, deploy_factory):
        """Test that failures while configuring the job are raised."""
        configurator.configure_job.side_effect = JenkinsApiError("cannot post")
        deploy = deploy_factory(
            stage=Stage(name="StageA", jenkins_autoconfig_buildparams=True)
        )

        with pytest.raises(JenkinsApiError):
            trigger.build("build-a", deploy)
        client.build_job.assert_not_called()

    def test_email_domain_filter_applied(self, client, configurator, deploy_factory):
        """Test that the configured domain filters the emails parameter."""
        from jenkins_common.models import DeployUser

        trigger = JenkinsBuildTrigger(client, configurator, email_domain="@example.com")
        deploy = deploy_factory(buddy=DeployUser(name="Bob", email="bob@other.org"))

        trigger.build("build-a", deploy)

        assert client.build_job.call_args.args[1]["emails"] == "alice@example.com"


class TestJenkinsBuildStatus:
    """Test suite for JenkinsBuildStatus."""

    def test_status_and_url(self):
        client = Mock()
        client.get_build_details = Mock(
            return_value={"result": "SUCCESS", "url": "https://jenkins.example.com/job/build-a/5/"}
        )
        status = JenkinsBuildStatus(client, "build-a")

        assert status.status(5) == "SUCCESS"
        assert status.url(5) == "https://jenkins.example.com/job/build-a/5/"
        client.get_build_details.assert_called_once_with("build-a", 5)

    def test_details_cached_per_run_id(self):
        """Test that each run id is fetched once per instance."""
        client = Mock()
        client.get_build_details = Mock(side_effect=lambda job, n: {"result": f"R{n}", "url": ""})
        status = JenkinsBuildStatus(client, "build-a")

        assert status.status(1) == "R1"
        assert status.status(2) == "R2"
        assert status.status(1) == "R1"
        assert client.get_build_details.call_count == 2

    def test_not_found_placeholder(self):
        """Test that a missing build reports the not-found message and '#'."""
        client = Mock()
        client.get_build_details = Mock(side_effect=JenkinsNotFound())
        status = JenkinsBuildStatus(client, "build-a")

        assert status.status(9) == NOT_FOUND_MESSAGE
        assert status.url(9) == "#"

    def test_other_errors_propagate(self):
        client = Mock()
        client.get_build_details = Mock(side_effect=JenkinsApiError("HTTP 500", status_code=500))

        with pytest.raises(JenkinsApiError):
            JenkinsBuildStatus(client, "build-a").status(9)
