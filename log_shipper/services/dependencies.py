from __future__ import annotations

from functools import partial

import aiohttp
from fastapi import FastAPI, Request

from log_shipper.models.fly import AppData
from log_shipper.services.config import FlyApiConfig, ShipperMachineConfig
from log_shipper.services.deploy_service import MachineDeploymentService
from log_shipper.services.flaps_service import FlapsService
from log_shipper.services.fly_api_service import FlyApiService
from log_shipper.services.log_shipping_service import LogShippingService
from log_shipper.services.setup.add_on_setup_service import AddOnSetupService
from log_shipper.services.setup.secrets_setup_service import SecretsSetupService
from log_shipper.services.setup.shipper_setup_service import ShipperSetupService


def get_http_session_from_app(app: FastAPI) -> aiohttp.ClientSession:
    session = getattr(app.state, "http_session", None)
    if session is None:
        raise RuntimeError("HTTP session not initialized (app.state.http_session)")
    if not isinstance(session, aiohttp.ClientSession):
        raise RuntimeError("Unexpected http_session type")
    return session


def get_http_session(request: Request) -> aiohttp.ClientSession:
    return get_http_session_from_app(request.app)


def _flaps_for_app(config: FlyApiConfig, session: aiohttp.ClientSession, app: AppData) -> FlapsService:
    return FlapsService(config, session=session, app_name=app.name)


def build_log_shipping_service(*, config: FlyApiConfig, session: aiohttp.ClientSession) -> LogShippingService:
    """Wire the setup services around one Fly API config and HTTP session."""

    api = FlyApiService(config, session=session)
    flaps_factory = partial(_flaps_for_app, config, session)

    return LogShippingService(
        api=api,
        add_ons=AddOnSetupService(api=api),
        shipper=ShipperSetupService(
            api=api,
            flaps_factory=flaps_factory,
            machine_config=ShipperMachineConfig.from_env(),
        ),
        secrets=SecretsSetupService(
            api=api,
            deployer=MachineDeploymentService(flaps_factory=flaps_factory),
        ),
    )


def get_log_shipping_service(request: Request) -> LogShippingService:
    """FastAPI dependency provider for a LogShippingService instance."""

    return build_log_shipping_service(config=FlyApiConfig.from_env(), session=get_http_session(request))
