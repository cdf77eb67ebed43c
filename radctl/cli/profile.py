"""
Profile CLI commands - External interface layer
"""

import asyncio
import json
from pathlib import Path
from typing import Optional
import click

from ._common import configure_client, init_logging
from ..core.config import ConfigLoader
from ..core.exceptions import RadctlError
from ..core.profile.profile_models import RadiusProfile
from ..services.profile.profile_service import ProfileService, ProfileResource


@click.group()
def profile():
    """RADIUS profile management"""
    pass


def _echo_resource(resource: ProfileResource) -> None:
    click.echo(json.dumps(resource.model_dump(mode="json"), indent=2))


async def _load_profile(file: Path) -> RadiusProfile:
    data = await ConfigLoader().load_yaml(file)
    return RadiusProfile.parse(data)


async def _service(ctx: click.Context, operator_id: Optional[str] = None) -> ProfileService:
    client = await configure_client(ctx)
    return ProfileService(client, operator_id)


def _run(coro) -> None:
    """Run a command coroutine, turning radctl errors into CLI errors"""
    try:
        asyncio.run(coro)
    except RadctlError as e:
        click.echo(f"❌ {e}", err=True)
        raise click.ClickException(str(e))


@profile.command()
@click.argument('file', type=click.Path(exists=True, path_type=Path))
@click.option('-v', '--verbose', is_flag=True, help='Enable verbose logging')
@click.pass_context
def validate(ctx, file: Path, verbose: bool):
    """Validate a YAML profile file without contacting the API"""
    init_logging(ctx, verbose)

    async def _validate():
        radius_profile = await _load_profile(file)
        click.echo("Profile is valid!")
        click.echo(f"Profile: {radius_profile.id}")
        click.echo(f"Reply attributes: {len(radius_profile.reply)}")
        click.echo(f"Control attributes: {len(radius_profile.control)}")

    _run(_validate())


@profile.command()
@click.argument('file', type=click.Path(exists=True, path_type=Path))
@click.option('-o', '--operator', 'operator_id', help='Operator id (defaults to provider operator_id)')
@click.option('-v', '--verbose', is_flag=True, help='Enable verbose logging')
@click.pass_context
def create(ctx, file: Path, operator_id: Optional[str], verbose: bool):
    """Create a profile from a YAML file"""
    init_logging(ctx, verbose)

    async def _create():
        radius_profile = await _load_profile(file)
        service = await _service(ctx, operator_id)
        _echo_resource(await service.create(radius_profile))

    _run(_create())


@profile.command()
@click.argument('profile_id')
@click.option('-v', '--verbose', is_flag=True, help='Enable verbose logging')
@click.pass_context
def read(ctx, profile_id: str, verbose: bool):
    """Show a profile given OPERATOR_ID/PROFILE_ID"""
    init_logging(ctx, verbose)

    async def _read():
        operator_id, _ = ProfileService.split_id(profile_id)
        service = await _service(ctx, operator_id)
        _echo_resource(await service.import_profile(profile_id))

    _run(_read())


@profile.command()
@click.argument('profile_id')
@click.argument('file', type=click.Path(exists=True, path_type=Path))
@click.option('-v', '--verbose', is_flag=True, help='Enable verbose logging')
@click.pass_context
def update(ctx, profile_id: str, file: Path, verbose: bool):
    """Update OPERATOR_ID/PROFILE_ID with the settings in FILE"""
    init_logging(ctx, verbose)

    async def _update():
        radius_profile = await _load_profile(file)
        operator_id, _ = ProfileService.split_id(profile_id)
        service = await _service(ctx, operator_id)
        resource = ProfileResource(id=profile_id, operator_id=operator_id)
        _echo_resource(await service.update(resource, radius_profile))

    _run(_update())


@profile.command()
@click.argument('profile_id')
@click.option('-v', '--verbose', is_flag=True, help='Enable verbose logging')
@click.pass_context
def delete(ctx, profile_id: str, verbose: bool):
    """Delete OPERATOR_ID/PROFILE_ID (succeeds if already gone)"""
    init_logging(ctx, verbose)

    async def _delete():
        operator_id, _ = ProfileService.split_id(profile_id)
        service = await _service(ctx, operator_id)
        await service.delete(ProfileResource(id=profile_id, operator_id=operator_id))
        click.echo(f"✅ Profile {profile_id} deleted")

    _run(_delete())


@profile.command()
@click.argument('profile_id')
@click.option('-v', '--verbose', is_flag=True, help='Enable verbose logging')
@click.pass_context
def exists(ctx, profile_id: str, verbose: bool):
    """Print true/false depending on whether OPERATOR_ID/PROFILE_ID exists"""
    init_logging(ctx, verbose)

    async def _exists():
        operator_id, _ = ProfileService.split_id(profile_id)
        service = await _service(ctx, operator_id)
        found = await service.exists(ProfileResource(id=profile_id, operator_id=operator_id))
        click.echo("true" if found else "false")

    _run(_exists())
