"""Call command for PEPL CLI."""

import json
import sys
from pathlib import Path
from typing import Any, List

import click

from pepl.host import RecordingHost, ReplayHost, ReplayMismatchError, ScriptedHost
from pepl.runtime.context import StdlibConfig
from pepl.runtime.dispatch import Dispatcher
from pepl.runtime.errors import StdlibError
from pepl.runtime.host import CapabilityId
from pepl.runtime.values import Value, display, from_python


def parse_arg(text: str) -> Value:
    """JSON literal when it parses, otherwise the raw text as a string."""
    try:
        return from_python(json.loads(text))
    except (ValueError, TypeError, StdlibError):
        return from_python(text)


def parse_storage(items: List[str]) -> dict:
    storage = {}
    for item in items:
        key, sep, value = item.partition("=")
        if not sep:
            raise click.BadParameter(f"expected KEY=VALUE, got {item!r}", param_hint="--storage")
        storage[key] = value
    return storage


@click.command()
@click.argument('module')
@click.argument('function')
@click.argument('args', nargs=-1)
@click.option('--gas', '-g', type=int, default=None, help='Gas budget (default from config)')
@click.option('--grant', multiple=True, help='Grant a capability (http, storage, location, notifications or 1-4)')
@click.option('--now', type=int, default=None, help='Timestamp in ms returned by time.now')
@click.option('--storage', 'storage_items', multiple=True, help='Seed scripted storage with KEY=VALUE')
@click.option('--record', type=click.Path(dir_okay=False), help='Write the host transcript to this file')
@click.option('--replay', type=click.Path(exists=True, dir_okay=False), help='Answer host requests from a transcript')
@click.option('--json-output', '-j', 'json_output', is_flag=True, help='Output as JSON')
def call_command(module, function, args, gas, grant, now, storage_items, record, replay, json_output):
    """Call a stdlib function. ARGS are JSON literals; anything else is a string."""
    try:
        grants = [CapabilityId.parse(g) for g in grant]
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--grant")

    if replay:
        with open(Path(replay)) as f:
            host: Any = ReplayHost(json.load(f))
    else:
        host = ScriptedHost(storage=parse_storage(storage_items))
    if record:
        host = RecordingHost(host)

    dispatcher = Dispatcher(config=StdlibConfig())
    ctx = dispatcher.new_context(gas=gas, grants=grants, host=host, now=now)
    values = [parse_arg(a) for a in args]

    try:
        outcome = dispatcher.invoke_by_name(module, function, values, ctx)
    except ReplayMismatchError as e:
        if json_output:
            click.echo(json.dumps({"success": False, "replay_mismatch": e.to_dict()}, indent=2))
        else:
            click.echo(f"Error: replay mismatch: {e}", err=True)
        sys.exit(1)

    if record:
        with open(Path(record), "w") as f:
            json.dump(host.transcript, f, indent=2)

    if json_output:
        click.echo(json.dumps(outcome.to_dict(), indent=2, ensure_ascii=False))
    elif outcome.success:
        click.echo(display(outcome.value))
        click.echo(f"  gas used: {outcome.gas_used}", err=True)
    else:
        click.echo(f"Error: {outcome.error.kind.value}: {outcome.error}", err=True)

    if not outcome.success:
        sys.exit(1)
