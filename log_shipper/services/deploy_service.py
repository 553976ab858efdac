from __future__ import annotations

import logging
from typing import Callable

from log_shipper.models.fly import AppData
from log_shipper.services.flaps_service import FlapsService


logger = logging.getLogger(__name__)


class MachineDeploymentService:
    """Redeploys the machines of an app.

    Only restart-only deployments are supported: every machine is restarted in
    place so it boots with the app's current secrets. No config or image change
    is rolled out.
    """

    def __init__(self, *, flaps_factory: Callable[[AppData], FlapsService]) -> None:
        self._flaps_factory = flaps_factory

    async def redeploy(self, app: AppData, *, skip_health_checks: bool = True) -> int:
        """Restart every machine of `app`; return the number of machines restarted."""

        flaps = self._flaps_factory(app)
        machines = await flaps.list_machines()
        if not machines:
            logger.info("No machines to redeploy for app %s", app.name)
            return 0

        for machine in machines:
            logger.info("Restarting machine %s of app %s", machine.id, app.name)
            await flaps.restart(machine_id=machine.id)
            if not skip_health_checks:
                await flaps.wait(machine_id=machine.id, state="started")

        return len(machines)
