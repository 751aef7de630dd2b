"""Errors raised while talking to the Jenkins server."""

NOT_FOUND_MESSAGE = "Requested component is not found on the Jenkins CI server."


class JenkinsError(Exception):
    """Base class for Jenkins integration errors."""


class JenkinsApiError(JenkinsError):
    """Jenkins answered with an error status, or could not be reached."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class JenkinsNotFound(JenkinsApiError):
    """The requested job or build does not exist."""

    def __init__(self, message: str = NOT_FOUND_MESSAGE):
        super().__init__(message, status_code=404)


class JenkinsTimeout(JenkinsError, TimeoutError):
    """A request to Jenkins timed out."""


class BuildStartTimeout(JenkinsTimeout):
    """A triggered build did not start within its budget."""
