"""PEPL CLI Package"""

import logging

import click

from pepl.cli.call import call_command
from pepl.cli.functions import functions_command
from pepl.cli.replay import replay_command


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Debug logging')
def main(verbose):
    """PEPL stdlib CLI - call built-in functions under a gas budget."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING)


@click.command()
def version_command():
    """Show version info."""
    from pepl import __version__
    click.echo(f"pepl-stdlib {__version__}")


main.add_command(call_command, "call")
main.add_command(functions_command, "functions")
main.add_command(replay_command, "replay")
main.add_command(version_command, "version")

__all__ = [
    "main",
    "call_command",
    "functions_command",
    "replay_command",
    "version_command",
]
