from __future__ import annotations

import logging
from typing import Callable

from log_shipper.models.fly import AppData, Organization
from log_shipper.services.config import ShipperMachineConfig
from log_shipper.services.flaps_service import FlapsService
from log_shipper.services.fly_api_service import FlyApiService


logger = logging.getLogger(__name__)

LOG_SHIPPER_ROLE = "log-shipper"


def shipper_app_name(org_raw_slug: str) -> str:
    return f"{org_raw_slug}-auto-log-shipper"


class ShipperSetupService:
    """Provisioning helper for the per-organization log shipper app and its machine.

    Both resources are looked up before anything is created, so running setup
    again against a provisioned organization creates nothing. Lookups are
    "check then create" and are not safe against concurrent runs.
    """

    def __init__(
        self,
        *,
        api: FlyApiService,
        flaps_factory: Callable[[AppData], FlapsService],
        machine_config: ShipperMachineConfig,
    ) -> None:
        self._api = api
        self._flaps_factory = flaps_factory
        self._machine_config = machine_config

    async def ensure_shipper_app(self, organization: Organization) -> AppData:
        apps = await self._api.get_apps_by_role(role=LOG_SHIPPER_ROLE, organization_id=organization.id)
        if apps:
            if len(apps) > 1:
                logger.warning(
                    "Found %d log shipper apps in organization %s; using %s",
                    len(apps),
                    organization.slug,
                    apps[0].name,
                )
            return apps[0]

        shipper_app = await self._api.create_app(
            organization_id=organization.id,
            name=shipper_app_name(organization.raw_slug),
            app_role_id=LOG_SHIPPER_ROLE,
            machines=True,
        )
        logger.info("Created log shipper app %s in organization %s", shipper_app.name, organization.slug)

        await self.ensure_shipper_machine(shipper_app)
        return shipper_app

    async def ensure_shipper_machine(self, shipper_app: AppData) -> None:
        """Launch a log shipper machine unless the app already has one.

        Existing machines are not inspected beyond their presence.
        """

        flaps = self._flaps_factory(shipper_app)

        machines = await flaps.list_machines()
        if machines:
            return

        region = await self._api.get_nearest_region()
        launch_input = self._machine_config.to_launch_input(region=region)
        await flaps.launch(launch_input)

        logger.info("Launched log shipper app %s in the %s region", shipper_app.name, region)
