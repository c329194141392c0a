"""
Command-line interface for Stackup

Starts the local container stack with automatic port conflict resolution
and pushes the database schema without interactive prompts.
"""

import sys
from pathlib import Path
from typing import Optional

import click

from .config import StackupConfig, load_config
from .env_file import DATABASE_URL_KEY, EnvFile
from .launcher import SERVICES, StackLauncher
from .logging_config import mask_sensitive_data, setup_logging
from .ports import UNKNOWN_PORT_OWNER, PortsExhaustedError
from .schema_push import SchemaPusher


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Set logging level",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output",
)
@click.option(
    "--log-dir",
    type=click.Path(path_type=Path),
    default=None,
    help="Directory for log files",
)
@click.option(
    "--env-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Environment file receiving resolved ports (default: .env)",
)
@click.version_option(package_name="stackup")
@click.pass_context
def cli(
    ctx: click.Context,
    log_level: Optional[str],
    verbose: bool,
    log_dir: Optional[Path],
    env_file: Optional[Path],
) -> None:
    """
    Stackup: local development stack helpers

    Start the Docker Compose services on free ports and push the database
    schema non-interactively.
    """
    config = load_config(
        cli_overrides={
            k: v for k, v in {
                "log_level": log_level.upper() if log_level else None,
                "verbose": verbose or None,
                "log_dir": str(log_dir) if log_dir else None,
                "env_file": str(env_file) if env_file else None,
            }.items() if v is not None
        },
    )

    setup_logging(
        log_dir=config.log_dir,
        verbose=config.verbose,
        log_level=config.log_level,
        enable_file_logging=config.enable_file_logging,
    )

    ctx.ensure_object(dict)
    ctx.obj["config"] = config


@cli.command()
@click.pass_context
def up(ctx: click.Context) -> None:
    """Start PostgreSQL and Redis, moving to free ports on conflicts."""
    config: StackupConfig = ctx.obj["config"]

    click.echo("🐳 Starting Docker Compose...\n")

    launcher = StackLauncher(config)

    if launcher.compose.already_running():
        result = launcher.running_result()
        click.echo("✅ Containers are already running!")
        if result.status_output:
            click.echo(result.status_output.rstrip())
        return

    current = launcher.read_ports()
    conflicts = []
    for service, label, _ in SERVICES:
        port = getattr(current, service)
        click.echo(f"📊 Checking {label} port ({port})...")
        try:
            conflict = launcher.check_port(service, port)
        except PortsExhaustedError as e:
            click.echo(f"   ❌ {e}", err=True)
            sys.exit(1)

        if conflict:
            click.echo(f"   ⚠️  Port {port} in use by: {conflict.owner or UNKNOWN_PORT_OWNER}")
            click.echo(f"   ✅ Using alternative port: {conflict.replacement}")
            conflicts.append(conflict)
        else:
            click.echo(f"   ✅ Port {port} available")

    plan = launcher.plan_ports(current, conflicts)
    updated_keys = launcher.persist_ports(plan)
    if updated_keys:
        click.echo(f"\n📝 Updated {config.env_file}: {', '.join(updated_keys)}")
        if DATABASE_URL_KEY in updated_keys:
            click.echo(f"   {DATABASE_URL_KEY} now uses port {plan.final.postgres}")

    click.echo("\n🚀 Starting containers...")
    result = launcher.start(plan, updated_keys)

    if not result.success:
        click.echo("\n❌ Failed to start containers:", err=True)
        click.echo(result.up_result.output or result.up_result.get_summary(), err=True)
        sys.exit(1)

    click.echo("\n✅ Containers started successfully!\n")
    click.echo("📌 Configuration:")
    click.echo(f"   PostgreSQL: localhost:{plan.final.postgres}")
    click.echo(f"   Redis:      localhost:{plan.final.redis}")

    if plan.final.postgres != config.postgres_default_port:
        database_url = config.database_url_for(plan.final.postgres)
        click.echo(f"\n⚠️  PostgreSQL is using a non-default port ({plan.final.postgres})")
        click.echo(f"   Make sure {DATABASE_URL_KEY} in {config.env_file} is correct:")
        click.echo(f"   {DATABASE_URL_KEY}={database_url}")

    if result.status_output:
        click.echo("")
        click.echo(result.status_output.rstrip())


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show configured ports and container status."""
    config: StackupConfig = ctx.obj["config"]

    launcher = StackLauncher(config)
    ports = launcher.read_ports()
    env_file = EnvFile(config.get_env_file_path())
    database_url = env_file.get_var(DATABASE_URL_KEY)

    click.echo("📌 Configured ports:")
    click.echo(f"   PostgreSQL: localhost:{ports.postgres}")
    click.echo(f"   Redis:      localhost:{ports.redis}")
    if database_url:
        click.echo(f"   {DATABASE_URL_KEY}: {mask_sensitive_data(database_url)}")

    if not launcher.compose.already_running():
        click.echo("\n⏹️  Containers are not running")
        return

    click.echo("\n✅ Containers are running")
    result = launcher.compose.ps()
    if result.success and result.stdout:
        click.echo(result.stdout.rstrip())


@cli.command("db-push")
@click.pass_context
def db_push(ctx: click.Context) -> None:
    """Push the database schema, auto-confirming all prompts."""
    config: StackupConfig = ctx.obj["config"]

    click.echo("🗄️  Running schema push...\n")

    result = SchemaPusher(config).push()

    if result.stdout.strip():
        click.echo(result.stdout.rstrip())

    if result.failed:
        click.echo(f"\n❌ Schema push failed (exit code {result.exit_code}):", err=True)
        click.echo(result.stderr.rstrip() or result.get_summary(), err=True)
        sys.exit(1)

    click.echo("\n✅ Schema synchronized successfully!")


@cli.command("config-show")
@click.pass_context
def config_show(ctx: click.Context) -> None:
    """Show current configuration."""
    config: StackupConfig = ctx.obj["config"]

    click.echo("📋 Current Stackup Configuration:")
    for key, value in config.mask_sensitive_values().items():
        if isinstance(value, list):
            value = " ".join(str(item) for item in value)
        click.echo(f"   {key}: {value}")


def main() -> None:
    """Main entry point for the CLI."""
    cli()


def up_main() -> None:
    """Entry point for the stackup-up script."""
    cli(["up"])


def db_push_main() -> None:
    """Entry point for the stackup-db-push script."""
    cli(["db-push"])


if __name__ == "__main__":
    main()
