"""
Generic REST object - create/read/update/delete on caller-configured paths

An APIObject is a short-lived value: build a fresh one for every logical
operation.
"""

import json
from typing import Any, Dict, List, Optional, Union
from urllib.parse import quote
from loguru import logger

from .api_client import APIClient
from .api_models import ABSENT, Absent, ObjectOptions, ObjectState
from ..exceptions import ApiError, ConfigError, NotFoundError, ServiceError
from ..http_client import HTTPResponse


Document = Dict[str, Any]


def _lookup(document: Any, attribute: str) -> Any:
    """Walk a '/'-delimited attribute path through nested objects"""
    value = document
    for part in attribute.strip('/').split('/'):
        if not isinstance(value, dict) or part not in value:
            return None
        value = value[part]
    return value


def _as_text(value: Any) -> Optional[str]:
    """Render a JSON scalar the way it appears in a URL or filter"""
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class APIObject:
    """One remote resource instance and its REST configuration"""

    def __init__(self, api_client: APIClient, options: ObjectOptions):
        config = api_client.config
        self.api_client = api_client
        self.options = options
        self.logger = logger

        self.id: Optional[str] = options.object_id or options.known_id or None
        self.id_attribute = options.id_attribute or config.id_attribute

        self.create_method = (options.create_method or config.create_method).upper()
        self.read_method = (options.read_method or config.read_method).upper()
        self.update_method = (options.update_method or config.update_method).upper()
        self.destroy_method = (options.destroy_method or config.destroy_method).upper()

        item_path = f"{options.path.rstrip('/')}/{{id}}"
        self.create_path = options.create_path or options.path
        self.read_path = options.read_path or item_path
        self.update_path = options.update_path or item_path
        self.destroy_path = options.destroy_path or item_path

        self.copy_keys: List[str] = list(options.copy_keys if options.copy_keys is not None else config.copy_keys)
        self.data: Document = dict(options.data)

        # last fetched remote document, key order as returned by the API
        self.api_data: Document = {}
        # raw create response; some APIs only return secrets at creation
        self.api_response: Optional[str] = None
        self.state = ObjectState.UNRESOLVED

    def __repr__(self) -> str:
        return (f"APIObject(id={self.id!r}, path={self.options.path!r}, "
                f"id_attribute={self.id_attribute!r}, state={self.state.value})")

    def describe(self) -> str:
        """Multi-line dump used in debug logs"""
        return "\n".join([
            f"id: {self.id}",
            f"id_attribute: {self.id_attribute}",
            f"create: {self.create_method} {self.create_path}",
            f"read: {self.read_method} {self.read_path}",
            f"update: {self.update_method} {self.update_path}",
            f"destroy: {self.destroy_method} {self.destroy_path}",
            f"query_string: {self.options.query_string}",
            f"copy_keys: {self.copy_keys}",
            f"data: {json.dumps(self.data)}",
            f"api_data: {json.dumps(self.api_data)}",
        ])

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    def _render_path(self, template: str, query_string: Optional[str] = None) -> str:
        """Substitute {id} and append the static query string"""
        path = template
        if "{id}" in path:
            if not self.id:
                raise ConfigError(f"Path '{template}' needs an object id but none is known")
            path = path.replace("{id}", quote(self.id, safe=""))

        query = query_string if query_string is not None else self.options.query_string
        if query:
            separator = "&" if "?" in path else "?"
            path = f"{path}{separator}{query.lstrip('?')}"
        return path

    async def _send(self, operation: str, method: str, path: str,
                    body: Optional[Document] = None) -> HTTPResponse:
        """Dispatch through the shared client, tracking the operation state"""
        payload = json.dumps(body) if body is not None else None
        self.state = ObjectState.PENDING
        try:
            return await self.api_client.send(method, path, payload, operation=operation)
        except Exception:
            self.state = ObjectState.FAILED
            raise

    def _fail(self, operation: str, response: HTTPResponse, method: str) -> ApiError:
        self.state = ObjectState.FAILED
        self.logger.error(f"{operation}: {method} {response.url} returned {response.status_code}")
        return ApiError(response.status_code, response.text, method=method, url=response.url)

    def _parse(self, response: HTTPResponse) -> Any:
        """Decode the response body; empty bodies decode to None"""
        if not response.text.strip():
            return None
        try:
            return response.json()
        except ServiceError:
            self.state = ObjectState.FAILED
            raise

    def _extract_id(self, document: Any) -> Optional[str]:
        return _as_text(_lookup(document, self.id_attribute))

    # ------------------------------------------------------------------
    # operations
    # ------------------------------------------------------------------

    async def create(self, payload: Optional[Document] = None) -> Document:
        """
        Create the object and resolve its identifier

        The id from the response body (id_attribute) wins over a
        pre-assigned id. The raw response is kept in api_response.
        """
        body = dict(payload) if payload is not None else dict(self.data)
        self.data = body
        method = self.create_method
        response = await self._send("create", method, self._render_path(self.create_path), body)

        if not response.is_success():
            raise self._fail("create", response, method)

        self.api_response = response.text
        document = self._parse(response)

        response_id = self._extract_id(document) if isinstance(document, dict) else None
        if response_id:
            self.id = response_id
        if not self.id:
            self.state = ObjectState.FAILED
            raise ServiceError(
                f"Create succeeded but no id was found in attribute '{self.id_attribute}' "
                f"and none was provided: {response.text}"
            )

        self.api_data = document if isinstance(document, dict) else dict(body)
        self.state = ObjectState.RESOLVED
        self.logger.debug(f"create: object '{self.id}' created")
        return self.api_data

    async def read(self) -> Union[Document, Absent]:
        """
        Fetch the remote document

        Returns ABSENT when the object is gone (404 on a direct read).
        """
        if self.options.read_search is not None:
            return await self._search()

        method = self.read_method
        response = await self._send("read", method, self._render_path(self.read_path))

        if response.is_not_found():
            self.logger.debug(f"read: object '{self.id}' does not exist")
            self.api_data = {}
            self.state = ObjectState.RESOLVED
            return ABSENT

        if not response.is_success():
            raise self._fail("read", response, method)

        document = self._parse(response)
        if not isinstance(document, dict):
            self.state = ObjectState.FAILED
            raise ServiceError(f"Expected a JSON object from {response.url}, got: {response.text}")

        if not self.id:
            self.id = self._extract_id(document)
        self.api_data = document
        self.state = ObjectState.RESOLVED
        return document

    async def _search(self) -> Document:
        """Collection read selecting exactly one entry that matches every filter"""
        search = self.options.read_search
        method = self.read_method
        path = self._render_path(search.path or self.options.path, query_string=search.query_string)
        response = await self._send("read", method, path)

        if not response.is_success():
            raise self._fail("read", response, method)

        document = self._parse(response)
        results = _lookup(document, search.results_key) if search.results_key else document
        if not isinstance(results, list):
            self.state = ObjectState.FAILED
            raise ServiceError(
                f"Search results at '{search.results_key or '<root>'}' of {response.url} are not a list"
            )

        matches = [
            entry for entry in results
            if isinstance(entry, dict)
            and all(_as_text(_lookup(entry, key)) == value for key, value in search.filters.items())
        ]
        if len(matches) != 1:
            self.state = ObjectState.FAILED
            raise NotFoundError(
                f"Search {search.filters} on {path} matched {len(matches)} objects, expected exactly one",
                matches=len(matches),
            )

        found = matches[0]
        found_id = self._extract_id(found)
        if not found_id:
            self.state = ObjectState.FAILED
            raise ServiceError(f"Search match has no '{self.id_attribute}' attribute")

        self.id = found_id
        self.api_data = found
        self.state = ObjectState.RESOLVED
        return found

    async def update(self, payload: Optional[Document] = None) -> Document:
        """
        Replace the remote object

        With copy_keys configured, the object is read first and those
        fields are echoed back from the fresh copy.
        """
        body = dict(payload) if payload is not None else dict(self.data)

        if self.copy_keys:
            current = await self.read()
            if current is ABSENT:
                self.state = ObjectState.FAILED
                raise NotFoundError(f"Cannot update '{self.id}': object does not exist", matches=0)
            for key in self.copy_keys:
                if key in current:
                    body[key] = current[key]

        self.data = body
        method = self.update_method
        response = await self._send("update", method, self._render_path(self.update_path), body)

        if not response.is_success():
            raise self._fail("update", response, method)

        document = self._parse(response)
        self.api_data = document if isinstance(document, dict) else dict(body)
        self.state = ObjectState.RESOLVED
        return self.api_data

    async def delete(self) -> None:
        """Delete the object; a 404 means it is already gone and counts as success"""
        method = self.destroy_method
        response = await self._send("delete", method, self._render_path(self.destroy_path))

        if response.is_not_found():
            self.logger.debug(f"delete: object '{self.id}' was already absent")
        elif not response.is_success():
            raise self._fail("delete", response, method)

        self.api_data = {}
        self.state = ObjectState.RESOLVED

    async def exists(self) -> bool:
        """Report whether the object exists without raising on absence"""
        try:
            return await self.read() is not ABSENT
        except NotFoundError as e:
            if e.matches == 0:
                return False
            raise
