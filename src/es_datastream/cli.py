from __future__ import annotations

import json
import sys
from dataclasses import asdict
from itertools import islice
from pathlib import Path
from typing import Iterator, Optional

import typer
from loguru import logger

from .bulk import BulkBatch
from .config import get_settings, split_hosts
from .errors import ConfigError
from .naming import check_name, describe
from .output import DataStreamOutput, build_client
from .provisioning import ProvisioningClient
from .sinks import DeadLetterFileSink, LoggingErrorSink
from .utils import iter_ndjson, parse_datetime, utc_now

app = typer.Typer(help="Elasticsearch data stream output CLI")


def name_opt() -> Optional[str]:
    return typer.Option(
        None, "--data-stream", envvar="ES_DATA_STREAM_NAME", help="Target data stream name"
    )


def hosts_opt() -> Optional[str]:
    return typer.Option(None, "--hosts", help="Comma-separated Elasticsearch URLs")


def _output_config(data_stream: Optional[str], hosts: Optional[str]):
    settings = get_settings()
    cfg = settings.to_output_config(data_stream)
    if hosts:
        cfg.hosts = split_hosts(hosts)
    return cfg


def _event_time(t):
    if not isinstance(t, str):
        return t
    try:
        return parse_datetime(t)
    except ValueError:
        # left as-is; the builder reports it through the error sink
        return t


def _entries(path: Path) -> Iterator[tuple]:
    """Lines are {"time": ..., "record": {...}} or a bare record stamped now."""
    for obj in iter_ndjson(path):
        if isinstance(obj, dict) and "record" in obj and "time" in obj:
            yield _event_time(obj["time"]), obj["record"]
        else:
            yield utc_now(), obj


@app.command("check-name")
def check_name_cmd(name: str = typer.Argument(..., help="Candidate data stream name")):
    check = check_name(name)
    typer.echo(
        json.dumps(
            {
                "name": name,
                "valid": check.valid,
                "result": check.result.value,
                "message": describe(name, check.result),
            },
            indent=2,
        )
    )
    if not check.valid:
        raise typer.Exit(code=1)


@app.command("provision")
def provision(data_stream: Optional[str] = name_opt(), hosts: Optional[str] = hosts_opt()):
    """Create the ILM policy, index template and data stream."""
    try:
        cfg = _output_config(data_stream, hosts)
        client = build_client(cfg)
        try:
            ProvisioningClient(client).provision(cfg.data_stream_name)
        finally:
            client.close()
    except ConfigError as e:
        logger.error(str(e))
        sys.exit(1)
    logger.success(f"Provisioned data stream <{cfg.data_stream_name}>")


@app.command("ship")
def ship(
    file: Path = typer.Argument(..., exists=True, help="NDJSON file (.gz ok)"),
    tag: str = typer.Option("cli", "--tag", help="Routing tag for every batch"),
    batch_size: int = typer.Option(500, "--batch-size", min=1),
    data_stream: Optional[str] = name_opt(),
    hosts: Optional[str] = hosts_opt(),
    dead_letters: Optional[Path] = typer.Option(
        None, "--dead-letters", help="NDJSON file for records that could not be serialized"
    ),
):
    """Write an NDJSON file into the data stream in batches."""
    dl_path = dead_letters or get_settings().ES_DEAD_LETTER_PATH
    sink = DeadLetterFileSink(dl_path) if dl_path else LoggingErrorSink()
    try:
        cfg = _output_config(data_stream, hosts)
        out = DataStreamOutput(asdict(cfg), error_sink=sink)
    except ConfigError as e:
        logger.error(str(e))
        sys.exit(1)
    try:
        out.configure()
    except ConfigError as e:
        out.close()
        logger.error(str(e))
        sys.exit(1)

    failed = 0
    with out:
        entries = _entries(file)
        while True:
            chunk = list(islice(entries, batch_size))
            if not chunk:
                break
            outcome = out.write(BulkBatch.of(tag, chunk))
            failed += 0 if outcome.ok else 1
            typer.echo(
                json.dumps(
                    {
                        "tag": outcome.tag,
                        "state": outcome.state.value,
                        "written": outcome.written,
                        "skipped": outcome.skipped,
                        "dropped": outcome.dropped,
                        "partial_failure": outcome.partial_failure,
                    }
                )
            )
    if failed:
        logger.error(f"{failed} batch(es) were not fully written")
        raise typer.Exit(code=2)
    logger.success(f"Shipped {file} to <{cfg.data_stream_name}>")


@app.command("replay-dead-letters")
def replay_dead_letters(
    path: Path = typer.Argument(..., help="Dead-letter NDJSON file"),
    limit: int = typer.Option(100, "--limit", min=1),
):
    for rec in DeadLetterFileSink(path, mkdirs=False).replay(limit):
        typer.echo(json.dumps(asdict(rec), default=str))


if __name__ == "__main__":
    app()
