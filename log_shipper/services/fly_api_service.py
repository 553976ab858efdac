from __future__ import annotations

import asyncio
import json
import logging
from http import HTTPStatus
from typing import Any, Optional

import aiohttp

from log_shipper.models.fly import AddOn, AppData, SecretInput
from log_shipper.services.config import FlyApiConfig


logger = logging.getLogger(__name__)


class FlyApiError(RuntimeError):
    pass


class FlyNotFoundError(FlyApiError):
    pass


_APP_FIELDS = """
    id
    name
    organization {
        id
        slug
        rawSlug
    }
"""

GET_APP_QUERY = f"""
query GetApp($appName: String!) {{
    app(name: $appName) {{{_APP_FIELDS}}}
}}
"""

GET_APPS_BY_ROLE_QUERY = f"""
query GetAppsByRole($role: String!, $organizationId: ID!) {{
    apps(role: $role, organizationId: $organizationId) {{
        nodes {{{_APP_FIELDS}}}
    }}
}}
"""

CREATE_APP_MUTATION = f"""
mutation CreateApp($input: CreateAppInput!) {{
    createApp(input: $input) {{
        app {{{_APP_FIELDS}}}
    }}
}}
"""

GET_ADD_ON_QUERY = """
query GetAddOn($name: String) {
    addOn(name: $name) {
        id
        name
        token
    }
}
"""

CREATE_ADD_ON_MUTATION = """
mutation CreateAddOn($input: CreateAddOnInput!) {
    createAddOn(input: $input) {
        addOn {
            id
            name
            token
        }
    }
}
"""

CREATE_LIMITED_ACCESS_TOKEN_MUTATION = """
mutation CreateLimitedAccessToken(
    $name: String!,
    $organizationId: ID!,
    $profile: String!,
    $profileParams: JSON,
    $expiry: String
) {
    createLimitedAccessToken(
        input: {
            name: $name,
            organizationId: $organizationId,
            profile: $profile,
            profileParams: $profileParams,
            expiry: $expiry
        }
    ) {
        limitedAccessToken {
            id
            token
        }
    }
}
"""

SET_SECRETS_MUTATION = """
mutation SetSecrets($input: SetSecretsInput!) {
    setSecrets(input: $input) {
        release {
            id
            version
        }
    }
}
"""

GET_NEAREST_REGION_QUERY = """
query GetNearestRegion {
    nearestRegion {
        code
        name
    }
}
"""


class FlyApiService:
    """Minimal client for the Fly GraphQL API.

    Only the queries and mutations needed to provision log shipping are
    implemented. GraphQL errors are classified here: a "not found" class of
    error raises FlyNotFoundError, anything else FlyApiError.
    """

    _NOT_FOUND_CODES = frozenset({"NOT_FOUND"})

    def __init__(self, config: FlyApiConfig, *, session: aiohttp.ClientSession) -> None:
        self._config = config
        self._session = session

    @classmethod
    def _is_not_found(cls, errors: list[dict[str, Any]]) -> bool:
        for err in errors:
            extensions = err.get("extensions") or {}
            if isinstance(extensions, dict) and extensions.get("code") in cls._NOT_FOUND_CODES:
                return True
            message = str(err.get("message") or "").lower()
            if "not find" in message or "not found" in message:
                return True
        return False

    async def _graphql(self, *, query: str, variables: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        body = {"query": query, "variables": variables or {}}
        headers = {
            "Authorization": f"Bearer {self._config.access_token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

        try:
            async with self._session.post(
                self._config.graphql_url,
                data=json.dumps(body),
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=self._config.timeout_seconds),
            ) as resp:
                status = resp.status
                payload = await resp.read()
        except aiohttp.ClientError as exc:
            logger.exception("Fly GraphQL request failed")
            raise FlyApiError("Fly GraphQL request failed") from exc
        except asyncio.TimeoutError as exc:
            logger.exception("Fly GraphQL request timed out")
            raise FlyApiError("Fly GraphQL request timed out") from exc

        try:
            parsed = json.loads(payload.decode("utf-8")) if payload else {}
        except (UnicodeDecodeError, ValueError):
            parsed = {}

        errors = parsed.get("errors") if isinstance(parsed, dict) else None
        if errors:
            messages = "; ".join(str(e.get("message")) for e in errors if isinstance(e, dict))
            if self._is_not_found([e for e in errors if isinstance(e, dict)]):
                logger.debug("Fly GraphQL not-found error: %s", messages)
                raise FlyNotFoundError(messages or "Resource not found")
            raise FlyApiError(messages or "Fly GraphQL request returned errors")

        if status != HTTPStatus.OK:
            details = payload.decode("utf-8", errors="replace") if payload else ""
            raise FlyApiError(f"Unexpected Fly GraphQL response HTTP {status} {details}".strip())

        data = parsed.get("data") if isinstance(parsed, dict) else None
        if not isinstance(data, dict):
            raise FlyApiError("Fly GraphQL response is missing 'data'")
        return data

    @staticmethod
    def _require(node: Any, *, what: str) -> dict[str, Any]:
        if not isinstance(node, dict):
            raise FlyNotFoundError(f"Could not find {what}")
        return node

    async def get_app(self, *, app_name: str) -> AppData:
        data = await self._graphql(query=GET_APP_QUERY, variables={"appName": app_name})
        return AppData.from_graphql(self._require(data.get("app"), what=f"app {app_name}"))

    async def get_apps_by_role(self, *, role: str, organization_id: str) -> list[AppData]:
        data = await self._graphql(
            query=GET_APPS_BY_ROLE_QUERY,
            variables={"role": role, "organizationId": organization_id},
        )
        nodes = (data.get("apps") or {}).get("nodes") or []
        return [AppData.from_graphql(n) for n in nodes if isinstance(n, dict)]

    async def create_app(
        self,
        *,
        organization_id: str,
        name: str,
        app_role_id: Optional[str] = None,
        machines: bool = True,
    ) -> AppData:
        input_: dict[str, Any] = {
            "organizationId": organization_id,
            "name": name,
            "machines": machines,
        }
        if app_role_id:
            input_["appRoleId"] = app_role_id

        data = await self._graphql(query=CREATE_APP_MUTATION, variables={"input": input_})
        app = ((data.get("createApp") or {}).get("app"))
        if not isinstance(app, dict):
            raise FlyApiError(f"CreateApp returned no app (name={name})")
        return AppData.from_graphql(app)

    async def get_add_on(self, *, name: str) -> AddOn:
        data = await self._graphql(query=GET_ADD_ON_QUERY, variables={"name": name})
        return AddOn.from_graphql(self._require(data.get("addOn"), what=f"add-on {name}"))

    async def create_add_on(self, *, organization_id: str, name: str, app_id: str, add_on_type: str) -> AddOn:
        input_ = {
            "organizationId": organization_id,
            "name": name,
            "appId": app_id,
            "type": add_on_type,
        }
        data = await self._graphql(query=CREATE_ADD_ON_MUTATION, variables={"input": input_})
        add_on = (data.get("createAddOn") or {}).get("addOn")
        if not isinstance(add_on, dict):
            raise FlyApiError(f"CreateAddOn returned no add-on (name={name})")
        return AddOn.from_graphql(add_on)

    async def create_limited_access_token(
        self,
        *,
        name: str,
        organization_id: str,
        profile: str,
        profile_params: Optional[dict[str, Any]] = None,
        expiry: Optional[str] = None,
    ) -> str:
        data = await self._graphql(
            query=CREATE_LIMITED_ACCESS_TOKEN_MUTATION,
            variables={
                "name": name,
                "organizationId": organization_id,
                "profile": profile,
                "profileParams": profile_params,
                "expiry": expiry,
            },
        )
        token = ((data.get("createLimitedAccessToken") or {}).get("limitedAccessToken") or {}).get("token")
        if not token:
            raise FlyApiError(f"CreateLimitedAccessToken returned no token (name={name})")
        return str(token)

    async def set_secrets(self, *, app_id: str, secrets: list[SecretInput]) -> None:
        if not secrets:
            raise ValueError("secrets must not be empty")

        input_ = {
            "appId": app_id,
            "secrets": [{"key": s.key, "value": s.value} for s in secrets],
        }
        await self._graphql(query=SET_SECRETS_MUTATION, variables={"input": input_})

    async def get_nearest_region(self) -> str:
        data = await self._graphql(query=GET_NEAREST_REGION_QUERY)
        code = (data.get("nearestRegion") or {}).get("code")
        if not code:
            raise FlyApiError("GetNearestRegion returned no region code")
        return str(code)
