#!/usr/bin/env python3
"""
radctl - RADIUS profile REST API control
Main entry point for the CLI
"""

import click

from .profile import profile
from .token import token
from ..core.version import get_version

@click.group()
@click.option('--config', type=click.Path(exists=True), help='Provider config file path (YAML)')
@click.option('--debug', is_flag=True, help='Log request and response bodies')
@click.pass_context
def cli(ctx, config, debug):
    """RADIUS profile management over a generic REST API"""
    ctx.ensure_object(dict)
    ctx.obj['config'] = config
    ctx.obj['debug'] = debug

@cli.command()
def version():
    """Show version information"""
    version_str = get_version()
    click.echo(f"radctl version {version_str}")

# Add subcommand groups
cli.add_command(profile)
cli.add_command(token)

if __name__ == '__main__':
    cli()
