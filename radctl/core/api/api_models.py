"""
REST object configuration models and the absent sentinel
"""

import enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, field_validator


class Absent(enum.Enum):
    """Outcome of a read whose object does not exist remotely. Not an error."""
    ABSENT = "absent"

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "ABSENT"


ABSENT = Absent.ABSENT


class ObjectState(str, enum.Enum):
    """Lifecycle of one logical operation on a remote object"""
    UNRESOLVED = "unresolved"
    PENDING = "pending"
    RESOLVED = "resolved"
    FAILED = "failed"


class ReadSearch(BaseModel):
    """Collection read that selects the single entry matching every filter"""
    filters: Dict[str, str] = Field(..., min_length=1)
    results_key: Optional[str] = Field(default=None, description="Key holding the result list, '/' for nesting")
    query_string: Optional[str] = None
    path: Optional[str] = Field(default=None, description="Collection path, defaults to the object base path")


class ObjectOptions(BaseModel):
    """
    Per resource kind REST settings

    Path templates may contain {id}. Methods, id_attribute and copy_keys
    left as None fall back to the provider-wide configuration.
    """
    path: str
    create_path: Optional[str] = None
    read_path: Optional[str] = None
    update_path: Optional[str] = None
    destroy_path: Optional[str] = None

    create_method: Optional[str] = None
    read_method: Optional[str] = None
    update_method: Optional[str] = None
    destroy_method: Optional[str] = None

    id_attribute: Optional[str] = None
    object_id: Optional[str] = Field(default=None, description="Identifier supplied by the caller")
    known_id: Optional[str] = Field(default=None, description="Identifier already tracked for this object")
    query_string: Optional[str] = None
    read_search: Optional[ReadSearch] = None
    copy_keys: Optional[List[str]] = None
    data: Dict[str, Any] = Field(default_factory=dict)

    model_config = {"frozen": True}

    @field_validator('path')
    @classmethod
    def validate_path(cls, v):
        if not v:
            raise ValueError('path must not be empty')
        return v.rstrip('/') or '/'

    @field_validator('query_string')
    @classmethod
    def strip_question_mark(cls, v):
        return v.lstrip('?') if v else v
