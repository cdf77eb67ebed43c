"""
Token CLI commands - External interface layer
"""

import asyncio
import json
import click

from ._common import configure_client, init_logging
from ..core.exceptions import RadctlError

@click.group()
def token():
    """OAuth client-credentials token commands"""
    pass

@token.command()
@click.option('-f', '--format', 'output_format',
              type=click.Choice(['token', 'bearer', 'json']),
              default='token',
              help='Output format (default: token)')
@click.option('-v', '--verbose',
              is_flag=True,
              help='Enable verbose logging')
@click.pass_context
def get(ctx, output_format: str, verbose: bool):
    """Fetch an access token with the configured OAuth client credentials

    Usage:
      radctl --config provider.yaml token get
      radctl --config provider.yaml token get --format json
    """
    init_logging(ctx, verbose)
    asyncio.run(_get_token_async(ctx, output_format))

async def _get_token_async(ctx: click.Context, output_format: str):
    """Async token retrieval"""

    try:
        client = await configure_client(ctx)
        if not client.token_manager.enabled:
            raise click.ClickException("No oauth block configured for this provider")

        access_token = await client.token_manager.get_token()

        if output_format == "bearer":
            formatted_output = access_token.authorization_header()
        elif output_format == "json":
            formatted_output = json.dumps({
                "access_token": access_token.token,
                "token_type": "Bearer",
                "expires_at": access_token.expires_at,
                "scope": " ".join(access_token.scopes) or None
            })
        else:
            formatted_output = access_token.token

        # plain print keeps the token on a single line for copy/paste
        print(formatted_output)

    except RadctlError as e:
        click.echo(f"❌ Failed to get token: {e}", err=True)
        raise click.ClickException(str(e))
