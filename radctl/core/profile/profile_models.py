"""
RADIUS profile models - Core layer
"""

import json
import re
from typing import Any, Dict, List, Literal, Optional
from loguru import logger
from pydantic import BaseModel, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from ..exceptions import ValidationError


PROFILE_ID_PATTERN = re.compile(r"^[0-9a-z_]{3,32}$")
DESCRIPTION_PATTERN = re.compile(r"^[0-9a-zA-Z][0-9a-zA-Z,._\-' ]{1,512}[0-9a-zA-Z.]$")

AttributeOperator = Literal["=", ":=", "+=", "|=", "|:=", "|+=", "|--"]
DEFAULT_OPERATOR = ":="


class RadiusAttribute(BaseModel):
    """One RADIUS attribute assignment; list position matters"""
    name: str
    value: List[str]
    op: AttributeOperator = DEFAULT_OPERATOR
    expand: bool = False
    do_xlat: bool = False
    is_json: bool = False

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError('name must not be blank')
        return v

    @field_validator('op', mode='before')
    @classmethod
    def default_operator(cls, v):
        return DEFAULT_OPERATOR if v in (None, "") else v


class RadiusProfile(BaseModel):
    """RADIUS profile as managed through the profile API"""
    id: str = Field(..., description="Profile ID")
    enabled: bool = True
    weight: int = Field(default=100, ge=1, le=100000)
    depends: List[str] = Field(default_factory=list)
    description: Optional[str] = None
    parameter_schema: Optional[str] = Field(default=None, description="JSON document as text")
    reply: List[RadiusAttribute] = Field(default_factory=list)
    control: List[RadiusAttribute] = Field(default_factory=list)

    model_config = {"extra": "forbid"}

    @field_validator('id')
    @classmethod
    def validate_id(cls, v):
        if not PROFILE_ID_PATTERN.match(v):
            raise ValueError(f'id must match {PROFILE_ID_PATTERN.pattern}')
        return v

    @field_validator('depends')
    @classmethod
    def validate_depends(cls, v):
        for dependency in v:
            if not PROFILE_ID_PATTERN.match(dependency):
                raise ValueError(f'dependency {dependency!r} must match {PROFILE_ID_PATTERN.pattern}')
        return v

    @field_validator('description')
    @classmethod
    def validate_description(cls, v):
        if v is not None and not DESCRIPTION_PATTERN.match(v):
            raise ValueError(f'description must match {DESCRIPTION_PATTERN.pattern}')
        return v

    @field_validator('parameter_schema', mode='before')
    @classmethod
    def validate_parameter_schema(cls, v):
        if v is None:
            return v
        if not isinstance(v, str):
            return json.dumps(v)
        try:
            json.loads(v)
        except json.JSONDecodeError as e:
            raise ValueError(f'parameter_schema is not valid JSON: {e}')
        return v

    @classmethod
    def parse(cls, data: Dict[str, Any]) -> "RadiusProfile":
        """Validate user supplied settings"""
        try:
            return cls(**data)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid profile: {e}")
        except TypeError as e:
            raise ValidationError(f"Invalid profile: {e}")

    def to_payload(self) -> Dict[str, Any]:
        """JSON document sent to the profile API"""
        payload: Dict[str, Any] = {
            "id": self.id,
            "enabled": self.enabled,
            "weight": self.weight,
            "depends": list(self.depends),
        }
        if self.description is not None:
            payload["description"] = self.description
        if self.parameter_schema is not None:
            payload["parameter_schema"] = json.loads(self.parameter_schema)
        payload["reply"] = [attribute.model_dump() for attribute in self.reply]
        payload["control"] = [attribute.model_dump() for attribute in self.control]
        return payload

    @classmethod
    def from_payload(cls, data: Dict[str, Any], previous: Optional["RadiusProfile"] = None) -> "RadiusProfile":
        """
        Build a profile from an API document

        The caller's parameter_schema text is kept when it decodes to the
        same value, so formatting differences do not show up as changes.
        """
        fields = {key: data[key] for key in cls.model_fields if key in data}
        remote_schema = fields.get("parameter_schema")
        if remote_schema is not None and previous is not None and previous.parameter_schema is not None:
            try:
                decoded = json.loads(remote_schema) if isinstance(remote_schema, str) else remote_schema
            except json.JSONDecodeError:
                # left as returned; validation below reports it
                pass
            else:
                if decoded == json.loads(previous.parameter_schema):
                    fields["parameter_schema"] = previous.parameter_schema

        try:
            return cls(**fields)
        except PydanticValidationError as e:
            logger.warning(f"Remote profile {data.get('id')!r} failed validation, keeping it as returned: {e}")
            if remote_schema is not None and not isinstance(remote_schema, str):
                fields["parameter_schema"] = json.dumps(remote_schema)
            for group in ("reply", "control"):
                fields[group] = [
                    RadiusAttribute.model_construct(**a) for a in fields.get(group) or [] if isinstance(a, dict)
                ]
            return cls.model_construct(**fields)
