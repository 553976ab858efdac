from __future__ import annotations

import asyncio
import json
import logging
from http import HTTPStatus
from typing import Any, Optional
from urllib.parse import quote

import aiohttp

from log_shipper.models.fly import LaunchMachineInput, Machine
from log_shipper.services.config import FlyApiConfig
from log_shipper.services.fly_api_service import FlyApiError, FlyNotFoundError


logger = logging.getLogger(__name__)


class FlapsServiceError(FlyApiError):
    pass


class FlapsService:
    """Client for the Fly Machines API, scoped to a single app."""

    def __init__(self, config: FlyApiConfig, *, session: aiohttp.ClientSession, app_name: str) -> None:
        if not app_name or not app_name.strip():
            raise ValueError("app_name must be provided")
        self._config = config
        self._session = session
        self._app_name = app_name

    @property
    def app_name(self) -> str:
        return self._app_name

    async def _request(
        self,
        *,
        method: str,
        path: str,
        body: Optional[dict[str, Any]] = None,
        params: Optional[dict[str, str]] = None,
    ) -> tuple[int, bytes]:
        url = f"{self._config.flaps_base_url}/v1/apps/{quote(self._app_name, safe='')}{path}"
        headers = {
            "Authorization": f"Bearer {self._config.access_token}",
            "Accept": "application/json",
        }
        data = None
        if body is not None:
            headers["Content-Type"] = "application/json"
            data = json.dumps(body)

        try:
            async with self._session.request(
                method.upper(),
                url,
                data=data,
                params=params,
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=self._config.timeout_seconds),
            ) as resp:
                return (resp.status, await resp.read())
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            logger.exception("Machines API request failed (method=%s path=%s)", method, path)
            raise FlapsServiceError(f"Machines API request failed (app={self._app_name})") from exc

    def _machine(self, obj: dict[str, Any], *, action: str) -> Machine:
        if not obj.get("id"):
            raise FlapsServiceError(f"Machines API returned a machine without an id ({action}, app={self._app_name})")
        return Machine.from_api(obj)

    @staticmethod
    def _details(payload: bytes) -> str:
        return payload.decode("utf-8", errors="replace") if payload else ""

    def _raise_for_status(self, status: int, payload: bytes, *, action: str) -> None:
        if status in (HTTPStatus.OK, HTTPStatus.CREATED):
            return
        message = f"Failed to {action} (app={self._app_name}) HTTP {status} {self._details(payload)}".strip()
        if status == HTTPStatus.NOT_FOUND:
            raise FlyNotFoundError(message)
        raise FlapsServiceError(message)

    async def list_machines(self) -> list[Machine]:
        status, payload = await self._request(method="GET", path="/machines")
        self._raise_for_status(status, payload, action="list machines")

        try:
            parsed = json.loads(payload.decode("utf-8")) if payload else []
        except (UnicodeDecodeError, ValueError) as exc:
            raise FlapsServiceError(f"Invalid machine list payload (app={self._app_name})") from exc

        if not isinstance(parsed, list):
            return []
        return [self._machine(m, action="list machines") for m in parsed if isinstance(m, dict)]

    async def launch(self, launch_input: LaunchMachineInput) -> Machine:
        status, payload = await self._request(method="POST", path="/machines", body=launch_input.to_api())
        self._raise_for_status(status, payload, action="launch machine")

        try:
            parsed = json.loads(payload.decode("utf-8")) if payload else {}
        except (UnicodeDecodeError, ValueError) as exc:
            raise FlapsServiceError(f"Invalid launch payload (app={self._app_name})") from exc
        if not isinstance(parsed, dict):
            raise FlapsServiceError(f"Invalid launch payload (app={self._app_name})")
        return self._machine(parsed, action="launch machine")

    async def restart(self, *, machine_id: str) -> None:
        if not machine_id:
            raise ValueError("machine_id must be provided")
        status, payload = await self._request(method="POST", path=f"/machines/{quote(machine_id, safe='')}/restart")
        self._raise_for_status(status, payload, action=f"restart machine {machine_id}")

    async def wait(self, *, machine_id: str, state: str = "started", timeout_seconds: int = 60) -> None:
        status, payload = await self._request(
            method="GET",
            path=f"/machines/{quote(machine_id, safe='')}/wait",
            params={"state": state, "timeout": str(timeout_seconds)},
        )
        self._raise_for_status(status, payload, action=f"wait for machine {machine_id} to be {state}")
