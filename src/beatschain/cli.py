"""CLI interface for the BeatsChain upload orchestrator."""

import json
import logging
from pathlib import Path

import typer

from .interfaces.cli_handlers import load_config, parse_meta_options, run_health_checks, upload_from_path, upload_status

app = typer.Typer(help="BeatsChain upload orchestrator command line interface")


@app.callback()
def configure_logging(
    log_level: str = typer.Option("INFO", "--log-level", help="Python logging level."),
) -> None:
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


@app.command("upload")
def upload_command(
    file: Path = typer.Option(
        ..., "--file", "-f", exists=True, dir_okay=False, readable=True, help="Audio file to upload and mint."
    ),
    content_type: str | None = typer.Option(
        None, "--content-type", help="Declared MIME type; guessed from the file name when omitted."
    ),
    owner: str | None = typer.Option(None, "--owner", help="Wallet address that receives the token."),
    meta: list[str] = typer.Option(
        [], "--meta", "-m", help="Metadata override as key=value. May be repeated."
    ),
    config: Path | None = typer.Option(None, "--config", help="Optional JSON/YAML orchestrator config."),
) -> None:
    """Upload an audio file, transcode it and mint a token."""

    try:
        metadata = parse_meta_options(meta)
    except ValueError as error:
        raise typer.BadParameter(str(error), param_hint="--meta") from error

    outcome = upload_from_path(
        file,
        content_type=content_type,
        owner=owner,
        metadata=metadata,
        config_path=config,
    )
    typer.echo(json.dumps(outcome.as_dict(), indent=2))
    if not outcome.succeeded:
        raise typer.Exit(code=1)


@app.command("status")
def status_command(
    job_id: str = typer.Argument(..., help="Job id printed by the upload command."),
    config: Path | None = typer.Option(None, "--config", help="Optional JSON/YAML orchestrator config."),
) -> None:
    """Print the last saved record of an upload job."""

    record = upload_status(job_id, config_path=config)
    if record is None:
        typer.echo(f"No upload record for job '{job_id}'.", err=True)
        raise typer.Exit(code=1)
    typer.echo(json.dumps(record.as_dict(), indent=2))


@app.command("health-check")
def health_check_command(
    url: str | None = typer.Option(None, "--url", help="Base URL of the service to probe."),
    interval: float | None = typer.Option(None, "--interval", min=0.01, help="Seconds between checks."),
    count: int = typer.Option(1, "--count", min=1, help="Number of checks to run."),
    config: Path | None = typer.Option(None, "--config", help="Optional JSON/YAML orchestrator config."),
) -> None:
    """Probe a service's /healthz endpoint on a fixed interval."""

    health_config = load_config(config).health_check
    statuses = run_health_checks(
        url or health_config.url,
        interval_seconds=interval or health_config.interval_seconds,
        count=count,
        timeout_seconds=health_config.timeout_seconds,
    )
    for status in statuses:
        label = "healthy" if status.healthy else "unhealthy"
        typer.echo(f"[{status.check_number}] {status.checked_at.isoformat()} {label}")
    if statuses and not statuses[-1].healthy:
        raise typer.Exit(code=1)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
