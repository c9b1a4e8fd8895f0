"""CLI interface for mixmaster."""

import click
import json
import logging
import sys
from pathlib import Path
from typing import Optional
from . import __version__
from .bridge import handle_connection, ingest
from .config import Configuration, ConfigurationMissing, Environment, load_config
from .jobfile import list_job_files, read_job_file
from .outcome import Rejection
from .payloads import normalize_adhoc


def _setup_logging(level: str) -> None:
    # stdout is the connection in bridge mode, so logs always go to stderr
    logging.basicConfig(
        stream=sys.stderr,
        level=level.upper(),
        format="%(name)s: %(levelname)s: %(message)s",
    )


def _load(ctx: click.Context) -> Configuration:
    """Load configuration or exit with an error."""
    try:
        return load_config(ctx.obj["config"])
    except ConfigurationMissing as e:
        click.echo(f"✗ {e}", err=True)
        sys.exit(1)


@click.group()
@click.option("--config", "config_path", type=click.Path(path_type=Path),
              help="Configuration file (default: $MIXMASTER_CONFIG or /etc/mixmaster.ini)")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path]):
    """Mixmaster - build-trigger ingestion gateway"""
    env = Environment()
    _setup_logging(env.log_level)
    ctx.ensure_object(dict)
    ctx.obj["config"] = config_path or env.config


@cli.command()
@click.pass_context
def bridge(ctx: click.Context):
    """Serve one socket-activated connection on stdin/stdout.

    Example:
        systemd unit with Accept=yes and StandardInput=socket
    """
    handle_connection(ctx.obj["config"], sys.stdin.buffer, sys.stdout.buffer)


@cli.command()
@click.argument("job_json")
@click.pass_context
def adhoc(ctx: click.Context, job_json: str):
    """Queue an adhoc build without going through the bridge.

    Example:
        mixmaster adhoc '{"scm":"git","repositoryUrl":"git@x:o/r.git",
        "repositoryName":"o/r","commit":"abc123","branch":"main"}'
    """
    try:
        payload = json.loads(job_json)
    except json.JSONDecodeError as e:
        click.echo(f"✗ Invalid JSON: {e}", err=True)
        sys.exit(1)
    if not isinstance(payload, dict):
        click.echo("✗ Invalid JSON: expected an object", err=True)
        sys.exit(1)

    outcome = ingest(payload, normalize_adhoc, _load(ctx))
    if isinstance(outcome, Rejection):
        click.echo(f"✗ {outcome.message or outcome.kind.value}", err=True)
        sys.exit(1)
    click.echo(f"✓ Job queued as {outcome.job_file}")


@cli.group()
def config():
    """Inspect configuration"""
    pass


@config.command()
@click.pass_context
def show(ctx: click.Context):
    """Show settings and configured targets.

    Example:
        mixmaster config show
    """
    cfg = _load(ctx)
    settings = cfg.settings

    click.echo("\nSettings:")
    click.echo(f"  spool:          {settings.spool}")
    click.echo(f"  notifications:  {settings.notifications}")
    click.echo(f"  mode:           {settings.mode.value}")
    click.echo(f"  mailto:         {settings.mailto or '-'}")
    for project, targets in sorted(cfg.projects.items()):
        click.echo(f"\n[{project}]")
        for target, command in targets.items():
            click.echo(f"  {target:<24} {command}")
    click.echo()


@cli.group()
def spool():
    """Inspect the spool directory"""
    pass


@spool.command("list")
@click.option("--limit", default=10, help="Maximum jobs to display")
@click.pass_context
def list_jobs(ctx: click.Context, limit: int):
    """List job files waiting for the build executor.

    Example:
        mixmaster spool list --limit 20
    """
    cfg = _load(ctx)
    paths = list_job_files(Path(cfg.settings.spool))[:limit]

    if not paths:
        click.echo("Spool is empty")
        return

    click.echo(f"\n{'File':<24} {'Project':<24} {'Target':<20} {'Commit':<12}")
    click.echo("-" * 82)
    for path in paths:
        job = read_job_file(path)
        commit = job.get("commit", "")[:12]
        click.echo(f"{path.name:<24} {job.get('project', ''):<24} {job.get('target', ''):<20} {commit:<12}")
    click.echo()


@cli.command()
def version():
    """Show the mixmaster version."""
    click.echo(__version__)


if __name__ == "__main__":
    cli()
