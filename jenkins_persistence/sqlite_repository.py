"""
SQLite implementation of the Jenkins job repository.

Uses aiosqlite for async operations.
Can be easily replaced with PostgreSQL/MySQL implementations.
"""

from datetime import datetime

import aiosqlite

from jenkins_common.models import JenkinsJob
from jenkins_common.repository import JenkinsJobRepository

_COLUMNS = "id, name, deploy_id, jenkins_job_id, status, error, created_at"


class SQLiteJenkinsJobRepository(JenkinsJobRepository):
    """
    SQLite-based storage for Jenkins job records.

    Uses a single table:
    - jenkins_jobs: one row per trigger attempt, indexed by deploy_id
    """

    def __init__(self, db_path: str = "jenkins_jobs.db"):
        """
        Initialize the SQLite repository.

        Args:
            db_path: Path to the SQLite database file
        """
        self.db_path = db_path
        self._connection: aiosqlite.Connection | None = None

    async def _get_connection(self) -> aiosqlite.Connection:
        """Get or create database connection."""
        if self._connection is None:
            self._connection = await aiosqlite.connect(self.db_path)
        return self._connection

    async def initialize(self) -> None:
        """
        Create database tables if they don't exist.

        Schema:
        - jenkins_jobs table: (id, name, deploy_id, jenkins_job_id, status,
          error, created_at). error is bounded by ERROR_COLUMN_LIMIT, which
          the model enforces before insert.
        """
        conn = await self._get_connection()

        await conn.execute("""
            CREATE TABLE IF NOT EXISTS jenkins_jobs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                deploy_id INTEGER NOT NULL,
                jenkins_job_id INTEGER,
                status TEXT,
                error TEXT,
                created_at TEXT NOT NULL
            )
        """)

        await conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_jenkins_jobs_deploy_id
            ON jenkins_jobs(deploy_id)
        """)

        await conn.commit()

    async def close(self) -> None:
        """Close the database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    async def create_jenkins_job(self, jenkins_job: JenkinsJob) -> JenkinsJob:
        """
        Insert a record and fill in its generated id.

        Args:
            jenkins_job: Record to persist
        """
        conn = await self._get_connection()

        cursor = await conn.execute(
            """
            INSERT INTO jenkins_jobs (name, deploy_id, jenkins_job_id, status, error, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                jenkins_job.name,
                jenkins_job.deploy_id,
                jenkins_job.jenkins_job_id,
                jenkins_job.status,
                jenkins_job.error,
                jenkins_job.created_at.isoformat(),
            ),
        )
        await conn.commit()

        jenkins_job.id = cursor.lastrowid
        return jenkins_job

    async def get_jenkins_job(self, jenkins_job_id: int) -> JenkinsJob | None:
        """
        Retrieve a record by id.

        Args:
            jenkins_job_id: Database id of the record

        Returns:
            JenkinsJob if found, None otherwise
        """
        conn = await self._get_connection()

        cursor = await conn.execute(
            f"SELECT {_COLUMNS} FROM jenkins_jobs WHERE id = ?",
            (jenkins_job_id,),
        )
        row = await cursor.fetchone()

        if row is None:
            return None
        return self._row_to_jenkins_job(row)

    async def list_jenkins_jobs(self, deploy_id: int | None = None) -> list[JenkinsJob]:
        """
        List records, newest first.

        Args:
            deploy_id: Only return records created for this deploy

        Returns:
            List of JenkinsJob records
        """
        conn = await self._get_connection()

        if deploy_id is None:
            cursor = await conn.execute(
                f"SELECT {_COLUMNS} FROM jenkins_jobs ORDER BY id DESC"
            )
        else:
            cursor = await conn.execute(
                f"SELECT {_COLUMNS} FROM jenkins_jobs WHERE deploy_id = ? ORDER BY id DESC",
                (deploy_id,),
            )

        rows = await cursor.fetchall()
        return [self._row_to_jenkins_job(row) for row in rows]

    @staticmethod
    def _row_to_jenkins_job(row) -> JenkinsJob:
        (
            record_id,
            name,
            deploy_id,
            jenkins_job_id,
            status,
            error,
            created_at_str,
        ) = row
        return JenkinsJob(
            id=record_id,
            name=name,
            deploy_id=deploy_id,
            jenkins_job_id=jenkins_job_id,
            status=status,
            error=error,
            created_at=datetime.fromisoformat(created_at_str),
        )
