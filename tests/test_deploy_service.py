import pytest

from log_shipper.models.fly import AppData, Machine
from log_shipper.services.deploy_service import MachineDeploymentService


@pytest.fixture
def shipper_app(acme_org) -> AppData:
    return AppData(id="s1", name="acme-auto-log-shipper", organization=acme_org)


@pytest.mark.asyncio
async def test_restart_only_redeploy_restarts_every_machine(fly, shipper_app) -> None:
    fly.machines[shipper_app.name] = [Machine(id="m1"), Machine(id="m2")]
    deployer = MachineDeploymentService(flaps_factory=fly.flaps_for)

    restarted = await deployer.redeploy(shipper_app)

    assert restarted == 2
    assert [c["machine_id"] for c in fly.calls_for("restart")] == ["m1", "m2"]
    assert fly.count("wait") == 0


@pytest.mark.asyncio
async def test_health_checks_wait_for_started(fly, shipper_app) -> None:
    fly.machines[shipper_app.name] = [Machine(id="m1")]
    deployer = MachineDeploymentService(flaps_factory=fly.flaps_for)

    await deployer.redeploy(shipper_app, skip_health_checks=False)

    assert fly.operations() == ["list_machines", "restart", "wait"]


@pytest.mark.asyncio
async def test_no_machines_is_a_no_op(fly, shipper_app) -> None:
    deployer = MachineDeploymentService(flaps_factory=fly.flaps_for)

    assert await deployer.redeploy(shipper_app) == 0
    assert fly.count("restart") == 0

