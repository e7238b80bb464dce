"""Functions command for PEPL CLI - registry listing."""

import json
import sys

import click

from pepl.modules import default_registry


@click.command()
@click.option('--module', '-m', 'module_name', default=None, help='Only list this module')
@click.option('--json-output', '-j', 'json_output', is_flag=True, help='Output as JSON')
def functions_command(module_name, json_output):
    """List the registered stdlib functions."""
    registry = default_registry()
    if module_name and module_name not in registry.modules:
        click.echo(f"Error: Unknown module: {module_name}", err=True)
        sys.exit(1)

    specs = registry.specs(module_name)

    if json_output:
        output = {
            "registry_id": registry.registry_id,
            "version": registry.version,
            "function_count": len(specs),
            "functions": [s.to_dict() for s in specs],
        }
        click.echo(json.dumps(output, indent=2))
        return

    current = None
    for spec in specs:
        if spec.module != current:
            current = spec.module
            cap = registry.modules[current].capability
            suffix = f" (capability {int(cap)})" if cap else ""
            click.echo(f"{current}{suffix}")
        click.echo(f"  {spec.name:<14} [{spec.arity_text()}] {spec.doc}")
