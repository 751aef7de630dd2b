"""
Jenkins Persistence module.

This module contains the database implementation for Jenkins job records.
Currently supports SQLite, but can be extended to PostgreSQL, MySQL, etc.

The persistence layer depends on jenkins_common for domain models and
interfaces, and is used by both jenkins_server and jenkins_admin.
"""

from .sqlite_repository import SQLiteJenkinsJobRepository

__all__ = ["SQLiteJenkinsJobRepository"]
