"""
Abstract repository interface for Jenkins job record persistence.

This module defines the contract that any database implementation must follow,
allowing easy swapping between SQLite, PostgreSQL, MySQL, etc.
"""

from abc import ABC, abstractmethod

from .models import JenkinsJob


class JenkinsJobRepository(ABC):
    """
    Abstract base class for Jenkins job record storage.

    Records are written once per trigger attempt and never updated.
    Implementations handle their own connection management.
    """

    @abstractmethod
    async def create_jenkins_job(self, jenkins_job: JenkinsJob) -> JenkinsJob:
        """
        Persist a new record.

        Args:
            jenkins_job: Record to persist (its id is ignored)

        Returns:
            The same record with its database id filled in
        """
        pass

    @abstractmethod
    async def get_jenkins_job(self, jenkins_job_id: int) -> JenkinsJob | None:
        """
        Retrieve a record by its database id.

        Args:
            jenkins_job_id: Database id of the record (not the Jenkins build number)

        Returns:
            JenkinsJob if found, None otherwise
        """
        pass

    @abstractmethod
    async def list_jenkins_jobs(self, deploy_id: int | None = None) -> list[JenkinsJob]:
        """
        List records, newest first.

        Args:
            deploy_id: Only return records created for this deploy

        Returns:
            List of JenkinsJob records
        """
        pass

    @abstractmethod
    async def initialize(self) -> None:
        """
        Initialize the database (create tables, etc.).

        Called once at application startup.
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """
        Close database connections and cleanup resources.

        Called at application shutdown.
        """
        pass
