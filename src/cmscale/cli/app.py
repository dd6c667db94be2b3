# src/cmscale/cli/app.py
from __future__ import annotations

import time
from pathlib import Path
from typing import Optional

import typer

from cmscale.config.loader import load_config
from cmscale.errors import InvalidUsage, ScaleError
from cmscale.hosts.loader import load_hosts
from cmscale.logging.log import DEFAULT_LOG_DIR, init_logging
from cmscale.observers.jsonfile import JsonFileObserver
from cmscale.observers.logger import LoggerObserver
from cmscale.utils.serialize import format_duration
from cmscale.workflow.controller import (
    Operation,
    OperationController,
    parse_action,
    parse_auth_mode,
    parse_mode,
    parse_resume,
)
from cmscale.workflow.state import FileStateStore


# ------------------------------------------------------------------------------
# CLI setup
# ------------------------------------------------------------------------------

app = typer.Typer(help="Cloudera Manager host scale-up / scale-down", add_completion=False)

USAGE = "Usage: cmscale scaleup|scaledown [password|key] [run|dry-run|plan] [true|false for resume]"


@app.command()
def main(
    action: Optional[str] = typer.Argument(None, help="scaleup or scaledown"),
    auth_mode: str = typer.Argument("password", help="password or key"),
    mode: str = typer.Argument("run", help="run, dry-run or plan"),
    resume: str = typer.Argument("false", help="true to resume from the saved step"),
    config: Path = typer.Option(
        Path("cmscale.conf"), "--config", envvar="CMSCALE_CONFIG", help="Config file (KEY=value or YAML)"
    ),
    hosts_file: Path = typer.Option(
        Path("host_list.txt"), "--hosts-file", envvar="CMSCALE_HOSTS_FILE", help="One hostname per line"
    ),
    state_file: Path = typer.Option(
        Path("autoscale.state"), "--state-file", envvar="CMSCALE_STATE_FILE", help="Resume marker file"
    ),
    log_dir: Path = typer.Option(DEFAULT_LOG_DIR, "--log-dir"),
    events_file: Optional[Path] = typer.Option(None, "--events-file", help="Also write events as JSON lines"),
    debug: bool = typer.Option(False, "--debug"),
):
    try:
        kind = parse_action(action)
        run_mode = parse_mode(mode)
        auth = parse_auth_mode(auth_mode)
        do_resume = parse_resume(resume)
    except InvalidUsage as exc:
        typer.echo(str(exc), err=True)
        typer.echo(USAGE, err=True)
        raise typer.Exit(code=1)

    started = time.monotonic()
    logger, run_id, log_path = init_logging(base_dir=log_dir, verbose=debug)

    observers = [LoggerObserver(logger)]
    if events_file:
        observers.append(JsonFileObserver(events_file))

    try:
        cfg = load_config(config)
        hosts = load_hosts(hosts_file)
        op = Operation(kind=kind, hosts=tuple(hosts), mode=run_mode, resume=do_resume, auth_mode=auth)

        controller = OperationController(
            config=cfg,
            store=FileStateStore(state_file),
            observers=observers,
            run_id=run_id,
        )
        controller.execute(op)
    except ScaleError as exc:
        logger.error(f"[ERROR] {exc}")
        logger.info(f"Total execution time: {format_duration(time.monotonic() - started)}.")
        raise typer.Exit(code=1)

    logger.info(f"Total execution time: {format_duration(time.monotonic() - started)}.")


if __name__ == "__main__":
    app()
