"""
Profile Service - reconciles RADIUS profiles against the profile API
Built on the generic REST object model; one APIObject per operation
"""

from typing import Any, Dict, Optional, Tuple, Union
from urllib.parse import quote
from loguru import logger
from pydantic import BaseModel

from ...core.api import ABSENT, APIClient, APIObject, ObjectOptions
from ...core.exceptions import ConfigError, NotFoundError, ValidationError
from ...core.profile.profile_models import RadiusProfile, PROFILE_ID_PATTERN


class ProfileResource(BaseModel):
    """Tracked state of one profile. id is None when the profile is not present."""
    id: Optional[str] = None
    operator_id: str
    profile: Optional[RadiusProfile] = None
    create_response: Optional[str] = None


class ProfileService:
    """
    Service layer for profile lifecycle operations

    Profiles are addressed externally as "operator_id/profile_id"; the
    API path only carries the profile id below the operator collection.
    """

    def __init__(self, api_client: APIClient, operator_id: Optional[str] = None):
        self.logger = logger
        self.api_client = api_client
        self.operator_id = operator_id or api_client.config.operator_id
        if not self.operator_id:
            raise ConfigError("operator_id is required to manage profiles")

    @staticmethod
    def composite_id(operator_id: str, profile_id: str) -> str:
        return f"{operator_id}/{profile_id}"

    @staticmethod
    def split_id(composite_id: str) -> Tuple[str, str]:
        """Split "operator_id/profile_id" into its parts"""
        operator_id, sep, profile_id = (composite_id or "").rpartition("/")
        if not sep or not operator_id or not PROFILE_ID_PATTERN.match(profile_id):
            raise ValidationError(f"Invalid profile id {composite_id!r}, expected 'operator_id/profile_id'")
        return operator_id, profile_id

    @staticmethod
    def collection_path(operator_id: str) -> str:
        return f"/operator/{quote(operator_id, safe='')}/profile"

    def _coerce(self, profile: Union[RadiusProfile, Dict[str, Any]]) -> RadiusProfile:
        if isinstance(profile, RadiusProfile):
            return profile
        return RadiusProfile.parse(profile)

    def _tracked_id(self, resource: ProfileResource) -> Tuple[str, str]:
        if not resource.id:
            raise ConfigError("Profile has no tracked id")
        return self.split_id(resource.id)

    def _make_api_object(self, operation: str, operator_id: str, profile_id: str,
                         payload: Optional[Dict[str, Any]] = None) -> APIObject:
        """Build a fresh APIObject for one operation"""
        self.logger.debug(f"Constructing new APIObject for {operation} of profile '{profile_id}'")
        options = ObjectOptions(
            path=self.collection_path(operator_id),
            object_id=profile_id,
            id_attribute="id",
            data=payload or {},
        )
        obj = APIObject(self.api_client, options)
        self.logger.debug(f"{operation}: object built:\n{obj.describe()}")
        return obj

    async def create(self, profile: Union[RadiusProfile, Dict[str, Any]],
                     operator_id: Optional[str] = None) -> ProfileResource:
        """Create a profile and return its tracked state as read back from the API"""
        profile = self._coerce(profile)
        operator_id = operator_id or self.operator_id

        obj = self._make_api_object("create", operator_id, profile.id, profile.to_payload())
        await obj.create()

        resource = ProfileResource(
            id=self.composite_id(operator_id, obj.id),
            operator_id=operator_id,
            profile=profile,
            create_response=obj.api_response,
        )
        self.logger.info(f"Created profile {resource.id}")
        return await self.read(resource)

    async def read(self, resource: ProfileResource) -> ProfileResource:
        """Refresh tracked state; a vanished profile clears the id instead of failing"""
        operator_id, profile_id = self._tracked_id(resource)
        obj = self._make_api_object("read", operator_id, profile_id)

        document = await obj.read()
        if document is ABSENT:
            self.logger.info(f"Profile {resource.id} no longer exists, removing it from state")
            return resource.model_copy(update={"id": None})

        profile = RadiusProfile.from_payload(document, previous=resource.profile)
        return resource.model_copy(update={
            "id": self.composite_id(operator_id, obj.id),
            "profile": profile,
        })

    async def update(self, resource: ProfileResource,
                     profile: Union[RadiusProfile, Dict[str, Any]]) -> ProfileResource:
        """Push new settings for an existing profile"""
        profile = self._coerce(profile)
        operator_id, profile_id = self._tracked_id(resource)
        if profile.id != profile_id:
            raise ValidationError(
                f"Profile id cannot change from '{profile_id}' to '{profile.id}'; delete and recreate instead"
            )

        obj = self._make_api_object("update", operator_id, profile_id, profile.to_payload())
        await obj.update()

        self.logger.info(f"Updated profile {resource.id}")
        return await self.read(resource.model_copy(update={"profile": profile}))

    async def delete(self, resource: ProfileResource) -> ProfileResource:
        """Delete a profile; deleting an already missing profile succeeds"""
        operator_id, profile_id = self._tracked_id(resource)
        obj = self._make_api_object("delete", operator_id, profile_id)
        await obj.delete()

        self.logger.info(f"Deleted profile {resource.id}")
        return resource.model_copy(update={"id": None})

    async def exists(self, resource: ProfileResource) -> bool:
        operator_id, profile_id = self._tracked_id(resource)
        obj = self._make_api_object("exists", operator_id, profile_id)
        return await obj.exists()

    async def import_profile(self, composite_id: str) -> ProfileResource:
        """Adopt an existing remote profile given "operator_id/profile_id" """
        operator_id, _ = self.split_id(composite_id)
        resource = await self.read(ProfileResource(id=composite_id, operator_id=operator_id))
        if resource.id is None:
            raise NotFoundError(f"Cannot import profile {composite_id}: it does not exist", matches=0)
        return resource
