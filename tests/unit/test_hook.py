"""
Unit tests for jenkins_integration.hook.

The trigger and repository are mocked to test the per-job sequencing and
what gets recorded for each outcome.
"""

import xml.etree.ElementTree as ET
from unittest.mock import AsyncMock, Mock

import pytest
import requests

from jenkins_common.models import (
    CONFIG_ERROR,
    ERROR_COLUMN_LIMIT,
    STARTUP_ERROR,
    BuildFailed,
    BuildStarted,
    Stage,
)
from jenkins_integration.build import JenkinsBuildTrigger
from jenkins_integration.client import JenkinsClient
from jenkins_integration.exceptions import JenkinsApiError
from jenkins_integration.hook import JenkinsDeployHook, job_names


class TestJobNames:
    def test_splits_on_comma_with_optional_space(self):
        stage = Stage(name="s", jenkins_job_names=" build-a, build-b,build-c ")

        assert job_names(stage) == ["build-a", "build-b", "build-c"]

    def test_empty(self):
        assert job_names(Stage(name="s", jenkins_job_names="  ")) == []
        assert job_names(Stage(name="s", jenkins_job_names=None)) == []


class TestJenkinsDeployHook:
    """Test suite for JenkinsDeployHook."""

    @pytest.fixture
    def mock_repository(self):
        """Create a mock repository that hands back what it is given."""
        repo = AsyncMock()

        async def create(record):
            record.id = len(repo.create_jenkins_job.await_args_list)
            return record

        repo.create_jenkins_job = AsyncMock(side_effect=create)
        return repo

    @pytest.fixture
    def mock_trigger(self):
        trigger = Mock()
        trigger.build = Mock(side_effect=lambda job_name, deploy: BuildStarted(job_name, 7))
        return trigger

    @pytest.fixture
    def hook(self, mock_trigger, mock_repository):
        return JenkinsDeployHook(mock_trigger, mock_repository)

    @pytest.fixture
    def two_job_deploy(self, deploy_factory):
        return deploy_factory(stage=Stage(name="StageA", jenkins_job_names="build-a, build-b"))

    @pytest.mark.asyncio
    async def test_records_each_started_build(self, hook, mock_trigger, two_job_deploy):
        """Test that every listed job is triggered in order and recorded."""
        records = await hook.deployed(two_job_deploy)

        assert [r.name for r in records] == ["build-a", "build-b"]
        assert all(r.jenkins_job_id == 7 for r in records)
        assert all(r.deploy_id == 42 for r in records)
        assert [c.args[0] for c in mock_trigger.build.call_args_list] == ["build-a", "build-b"]

    @pytest.mark.asyncio
    async def test_failed_deploy_triggers_nothing(self, hook, mock_trigger, mock_repository, deploy_factory):
        records = await hook.deployed(deploy_factory(succeeded=False))

        assert records == []
        mock_trigger.build.assert_not_called()
        mock_repository.create_jenkins_job.assert_not_called()

    @pytest.mark.asyncio
    async def test_disabled_hook_triggers_nothing(self, mock_trigger, mock_repository, deploy):
        """Test that an unconfigured integration skips triggering."""
        hook = JenkinsDeployHook(mock_trigger, mock_repository, enabled=False)

        assert await hook.deployed(deploy) == []
        mock_trigger.build.assert_not_called()

    @pytest.mark.asyncio
    async def test_startup_error_recorded(self, hook, mock_trigger, deploy):
        """Test that a build that never started is recorded with a truncated error."""
        message = "Jenkins 'build-a' build failed to start in a timely manner.  " + "x" * 400
        mock_trigger.build.side_effect = None
        mock_trigger.build.return_value = BuildFailed("build-a", "timeout", message)

        (record,) = await hook.deployed(deploy)

        assert record.jenkins_job_id is None
        assert record.status == STARTUP_ERROR
        assert record.error == message[:ERROR_COLUMN_LIMIT]
        assert len(record.error) == ERROR_COLUMN_LIMIT

    @pytest.mark.asyncio
    async def test_config_error_does_not_stop_next_job(self, hook, mock_trigger, two_job_deploy):
        """Test that a configuration failure on one job still lets the next run."""

        def build(job_name, deploy):
            if job_name == "build-a":
                raise JenkinsApiError("HTTP 403 posting config", status_code=403)
            return BuildStarted(job_name, 8)

        mock_trigger.build.side_effect = build

        first, second = await hook.deployed(two_job_deploy)

        assert first.status == CONFIG_ERROR
        assert "build-a" in first.error
        assert "HTTP 403" in first.error
        assert second.jenkins_job_id == 8
        assert second.status is None

    @pytest.mark.asyncio
    async def test_malformed_config_recorded(self, hook, mock_trigger, deploy):
        mock_trigger.build.side_effect = ET.ParseError("not well-formed")

        (record,) = await hook.deployed(deploy)

        assert record.status == CONFIG_ERROR
        assert "ParseError" in record.error


class TestJenkinsDeployHookWithClient:
    """Runs the hook through a real trigger and client over a mocked session."""

    @pytest.mark.asyncio
    async def test_non_json_reply_recorded_and_next_job_runs(self, deploy_factory):
        def response(status_code=200, json_data=None, text="", headers=None):
            r = Mock()
            r.status_code = status_code
            r.ok = True
            r.text = text
            r.headers = headers or {}
            r.json = Mock(return_value=json_data)
            return r

        login_page = response(text="<html>Please sign in</html>")
        login_page.json.side_effect = requests.exceptions.JSONDecodeError("Expecting value", "", 0)
        session = Mock(spec=requests.Session)
        session.request.side_effect = [
            response(201, headers={"Location": "https://jenkins.example.com/queue/item/1/"}),
            login_page,
            response(201, headers={"Location": "https://jenkins.example.com/queue/item/2/"}),
            response(json_data={"executable": {"number": 5}}),
        ]
        client = JenkinsClient("https://jenkins.example.com", session=session)
        client._crumb = {}
        repository = AsyncMock()
        repository.create_jenkins_job = AsyncMock(side_effect=lambda record: record)
        hook = JenkinsDeployHook(JenkinsBuildTrigger(client, Mock()), repository)

        first, second = await hook.deployed(
            deploy_factory(stage=Stage(name="StageA", jenkins_job_names="build-a, build-b"))
        )

        assert first.status == STARTUP_ERROR
        assert "Please sign in" in first.error
        assert second.jenkins_job_id == 5
        assert repository.create_jenkins_job.await_count == 2
