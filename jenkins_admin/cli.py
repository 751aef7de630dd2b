"""
Admin CLI for the deploy -> Jenkins integration.

Provides commands to set up the record database, inspect Jenkins job records,
look up build status and reconcile a Jenkins job config by hand.
"""

import asyncio
import json
import logging
import sys
import xml.etree.ElementTree as ET

import click

from jenkins_integration import JenkinsClient, JenkinsError, Settings, build_cache
from jenkins_integration.build import JenkinsBuildStatus
from jenkins_integration.job_config import JobConfigurator
from jenkins_persistence.sqlite_repository import SQLiteJenkinsJobRepository


def run_async(coro):
    """Helper to run async functions in CLI commands."""
    return asyncio.run(coro)


@click.group()
@click.option("--db-path", default=None, help="SQLite database (default: JENKINS_DB_PATH env or jenkins_jobs.db)")
@click.option("--log-level", default="WARNING", help="Logging level")
@click.pass_context
def cli(ctx: click.Context, db_path: str | None, log_level: str):
    """Jenkins Admin - Inspect and configure deploy-triggered Jenkins jobs."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    settings = Settings.from_env()
    ctx.obj = {"settings": settings, "db_path": db_path or settings.db_path}


def get_repository(ctx: click.Context) -> SQLiteJenkinsJobRepository:
    """Get the repository instance."""
    return SQLiteJenkinsJobRepository(ctx.obj["db_path"])


def get_client(ctx: click.Context) -> JenkinsClient:
    settings: Settings = ctx.obj["settings"]
    if not settings.is_configured:
        click.echo("Error: JENKINS_URL is not set", err=True)
        sys.exit(1)
    return JenkinsClient.from_settings(settings)


@cli.command("init-db")
@click.pass_context
def init_db(ctx: click.Context):
    """Create the Jenkins job record tables."""

    async def init():
        repo = get_repository(ctx)
        try:
            await repo.initialize()
        finally:
            await repo.close()

    run_async(init())
    click.echo(f"✓ Database ready at {ctx.obj['db_path']}")


@cli.command("list")
@click.option("--deploy-id", type=int, default=None, help="Only records of this deploy")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.pass_context
def list_records(ctx: click.Context, deploy_id: int | None, json_output: bool):
    """List Jenkins job records."""

    async def list_jobs():
        repo = get_repository(ctx)
        await repo.initialize()
        try:
            return await repo.list_jenkins_jobs(deploy_id=deploy_id)
        finally:
            await repo.close()

    records = run_async(list_jobs())

    if json_output:
        click.echo(json.dumps([r.to_dict() for r in records], indent=2))
        return

    if not records:
        click.echo("No Jenkins jobs found.")
        return

    click.echo(f"\n{'ID':<6} {'Deploy':<8} {'Job':<30} {'Build':<8} {'Status':<15}")
    click.echo("-" * 70)
    for r in records:
        build = str(r.jenkins_job_id) if r.jenkins_job_id is not None else "-"
        click.echo(f"{r.id:<6} {r.deploy_id:<8} {r.name:<30} {build:<8} {r.status or '':<15}")
        if r.error:
            click.echo(f"       {r.error}")
    click.echo()


@cli.command("status")
@click.argument("job_name")
@click.argument("run_id", type=int)
@click.pass_context
def status(ctx: click.Context, job_name: str, run_id: int):
    """Show the result and url of build RUN_ID of JOB_NAME."""
    build_status = JenkinsBuildStatus(get_client(ctx), job_name)
    try:
        result = build_status.status(run_id)
        url = build_status.url(run_id)
    except JenkinsError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"Result: {result or 'RUNNING'}")
    click.echo(f"URL:    {url}")


@cli.command("configure")
@click.argument("job_name")
@click.option("--project", "project_name", required=True, help="Project triggering the job")
@click.option("--stage", "stage_name", required=True, help="Stage triggering the job")
@click.pass_context
def configure(ctx: click.Context, job_name: str, project_name: str, stage_name: str):
    """Add missing SAMSON_ build parameters and the description block to JOB_NAME."""
    jenkins = get_client(ctx)
    configurator = JobConfigurator.build(jenkins, build_cache(ctx.obj["settings"]))
    try:
        changed = configurator.configure_job(job_name, project_name, stage_name)
    except JenkinsError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except ET.ParseError as e:
        click.echo(f"Error: invalid config.xml of {job_name}: {e}", err=True)
        sys.exit(1)

    if changed:
        click.echo(f"✓ Updated config of {job_name}")
    else:
        click.echo(f"Config of {job_name} already up to date")
