"""Replay command for PEPL CLI - transcript verification."""

import json
import sys
from pathlib import Path

import click

from pepl.host.replay import ReplayVerifier


@click.command()
@click.argument('transcript', type=click.Path(exists=True, dir_okay=False))
@click.option('--json-output', '-j', 'json_output', is_flag=True, help='Output as JSON')
def replay_command(transcript, json_output):
    """Verify the hash chain of a recorded host transcript."""
    with open(Path(transcript)) as f:
        entries = json.load(f)

    report = ReplayVerifier().verify_transcript(entries)

    if json_output:
        click.echo(json.dumps(report.to_dict(), indent=2))
    else:
        click.echo(f"Entries: {report.entries_checked}")
        click.echo(f"Hash chain: {'VALID' if report.chain_ok else 'INVALID'}")
        if report.first_mismatch:
            click.echo(f"First mismatch at #{report.first_mismatch['index']}")

    if not report.replay_pass:
        sys.exit(1)
