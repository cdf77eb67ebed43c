"""
Shared CLI helpers
"""

from typing import Any, Dict

import click

from ..core.api import APIClient
from ..core.logger import setup_logger
from ..services.provider.provider_service import ProviderService


async def configure_client(ctx: click.Context) -> APIClient:
    """Configure the provider from --config / REST_API_* env vars"""
    overrides: Dict[str, Any] = {}
    if ctx.obj.get('debug'):
        overrides['debug'] = True
    provider_service = ProviderService()
    return await provider_service.configure_from_file(ctx.obj.get('config'), overrides)


def init_logging(ctx: click.Context, verbose: bool) -> None:
    log_level = "DEBUG" if verbose or ctx.obj.get('debug') else "INFO"
    setup_logger(log_level)
