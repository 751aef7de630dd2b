"""
HTTP client for the Jenkins REST API.

Only the handful of calls the deploy integration needs: reading and writing
a job's config.xml, starting a parameterized build and waiting for it to
leave the queue, and reading build details.
"""

import logging
import time
from typing import Any
from urllib.parse import quote

import requests

from .exceptions import (
    BuildStartTimeout,
    JenkinsApiError,
    JenkinsNotFound,
    JenkinsTimeout,
)
from .settings import Settings

logger = logging.getLogger(__name__)

QUEUE_POLL_INTERVAL = 2.0


def job_path(job_name: str) -> str:
    """Map a (possibly foldered) job name like "team/deploy" to its url path."""
    segments = [s for s in job_name.strip("/").split("/") if s]
    return "/".join(f"job/{quote(segment, safe='')}" for segment in segments)


class JenkinsClient:
    """
    Thin wrapper around a requests session authenticated against Jenkins.

    One instance is built at startup and shared by every component.
    """

    def __init__(
        self,
        base_url: str,
        username: str = "",
        api_key: str = "",
        timeout: float = 30.0,
        session: requests.Session | None = None,
        poll_interval: float = QUEUE_POLL_INTERVAL,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.poll_interval = poll_interval
        self.session = session or requests.Session()
        if username:
            self.session.auth = (username, api_key)
        self._crumb: dict[str, str] | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "JenkinsClient":
        return cls(
            settings.jenkins_url,
            username=settings.username,
            api_key=settings.api_key,
            timeout=settings.request_timeout,
        )

    def _url(self, path: str) -> str:
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    def _request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        url = self._url(path)
        kwargs.setdefault("timeout", self.timeout)
        if method != "GET":
            headers = dict(kwargs.pop("headers", None) or {})
            headers.update(self._crumb_header())
            kwargs["headers"] = headers

        logger.debug(f"Jenkins {method} {url}")
        try:
            response = self.session.request(method, url, **kwargs)
        except requests.exceptions.Timeout as e:
            raise JenkinsTimeout(f"Timed out calling Jenkins at {url}: {e}") from e
        except requests.exceptions.RequestException as e:
            raise JenkinsApiError(f"Error calling Jenkins at {url}: {e}") from e

        if response.status_code == 404:
            raise JenkinsNotFound()
        if not response.ok:
            raise JenkinsApiError(
                f"HTTP {response.status_code} calling {url}: {response.text[:500]}",
                status_code=response.status_code,
            )
        return response

    @staticmethod
    def _json(response: requests.Response) -> dict[str, Any]:
        """Decode a JSON object body; anything else is an API error."""
        try:
            data = response.json()
        except ValueError as e:
            raise JenkinsApiError(
                f"Invalid JSON from {response.url}: {response.text[:200]}",
                status_code=response.status_code,
            ) from e
        if not isinstance(data, dict):
            raise JenkinsApiError(
                f"Unexpected JSON from {response.url}: {data!r}",
                status_code=response.status_code,
            )
        return data

    def _crumb_header(self) -> dict[str, str]:
        """Fetch the CSRF crumb once; an empty dict means crumbs are disabled."""
        if self._crumb is None:
            try:
                data = self._json(self._request("GET", "crumbIssuer/api/json"))
                try:
                    self._crumb = {data["crumbRequestField"]: data["crumb"]}
                except (KeyError, TypeError) as e:
                    raise JenkinsApiError(f"Malformed crumb from Jenkins: {data!r}") from e
            except JenkinsNotFound:
                self._crumb = {}
        return self._crumb

    def get_job_config(self, job_name: str) -> str:
        """Return the raw config.xml of a job."""
        return self._request("GET", f"{job_path(job_name)}/config.xml").text

    def post_job_config(self, job_name: str, config_xml: str) -> None:
        """Replace the config.xml of a job."""
        self._request(
            "POST",
            f"{job_path(job_name)}/config.xml",
            data=config_xml.encode("utf-8"),
            headers={"Content-Type": "application/xml; charset=utf-8"},
        )
        logger.info(f"Updated Jenkins config of '{job_name}'")

    def build_job(
        self,
        job_name: str,
        params: dict[str, Any] | None = None,
        build_start_timeout: float = 60,
    ) -> int:
        """
        Start a parameterized build and wait until it leaves the queue.

        Args:
            job_name: Jenkins job to build
            params: Build parameters, sent form-encoded
            build_start_timeout: Seconds to wait for the build to get a number

        Returns:
            The build number Jenkins assigned

        Raises:
            BuildStartTimeout: The build did not start in time
            JenkinsApiError: Jenkins rejected the build or cancelled it in the queue
        """
        try:
            response = self._request(
                "POST",
                f"{job_path(job_name)}/buildWithParameters",
                data=params or {},
            )
        except JenkinsTimeout as e:
            raise BuildStartTimeout(str(e)) from e

        queue_url = response.headers.get("Location")
        if not queue_url:
            raise JenkinsApiError(
                f"Jenkins did not return a queue item for '{job_name}'",
                status_code=response.status_code,
            )
        logger.info(f"Queued Jenkins build of '{job_name}' at {queue_url}")
        return self._wait_for_build_number(queue_url, build_start_timeout)

    def _wait_for_build_number(self, queue_url: str, build_start_timeout: float) -> int:
        deadline = time.monotonic() + build_start_timeout
        item_url = f"{queue_url.rstrip('/')}/api/json"
        while True:
            try:
                item = self._json(self._request("GET", item_url))
            except JenkinsTimeout as e:
                raise BuildStartTimeout(str(e)) from e

            if item.get("cancelled"):
                raise JenkinsApiError(f"Queued build {queue_url} was cancelled")
            executable = item.get("executable")
            if executable and executable.get("number") is not None:
                return int(executable["number"])

            if time.monotonic() + self.poll_interval > deadline:
                raise BuildStartTimeout(
                    f"Build did not start within {build_start_timeout} seconds"
                )
            time.sleep(self.poll_interval)

    def get_build_details(self, job_name: str, build_number: int) -> dict[str, Any]:
        """Return the api/json details of one build."""
        return self._json(
            self._request("GET", f"{job_path(job_name)}/{int(build_number)}/api/json")
        )
