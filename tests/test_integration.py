"""Live checks against the API at REST_API_URI (pytest --integration)."""

import os
import uuid

import pytest

from radctl.services.profile.profile_service import ProfileService
from radctl.services.provider.provider_service import ProviderService


pytestmark = pytest.mark.integration


@pytest.fixture
async def service():
    if not os.environ.get("REST_API_URI"):
        pytest.skip("REST_API_URI is not set")
    client = await ProviderService().configure({})
    return ProfileService(client)


async def test_profile_lifecycle(service):
    profile_id = f"it_{uuid.uuid4().hex[:12]}"

    resource = await service.create({"id": profile_id, "weight": 50, "enabled": True})
    try:
        assert resource.profile.weight == 50
        assert await service.exists(resource) is True

        resource = await service.update(resource, {"id": profile_id, "weight": 60})
        assert resource.profile.weight == 60
    finally:
        resource = await service.delete(resource)

    assert resource.id is None
