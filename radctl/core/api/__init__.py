"""
Generic REST object model
"""

from .api_models import ABSENT, Absent, ObjectOptions, ObjectState, ReadSearch
from .api_client import APIClient
from .api_object import APIObject

__all__ = ["ABSENT", "Absent", "ObjectOptions", "ObjectState", "ReadSearch", "APIClient", "APIObject"]
