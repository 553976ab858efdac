from __future__ import annotations

from typing import Any, Optional

import pytest

from log_shipper.models.fly import AddOn, AppData, LaunchMachineInput, Machine, Organization, SecretInput
from log_shipper.services.config import ShipperMachineConfig
from log_shipper.services.deploy_service import MachineDeploymentService
from log_shipper.services.fly_api_service import FlyNotFoundError
from log_shipper.services.log_shipping_service import LogShippingService
from log_shipper.services.setup.add_on_setup_service import AddOnSetupService
from log_shipper.services.setup.secrets_setup_service import SecretsSetupService
from log_shipper.services.setup.shipper_setup_service import ShipperSetupService


class FakeFly:
    """In-memory stand-in for the Fly GraphQL API and Machines API.

    Every call is recorded in `calls` as (operation, kwargs). Set
    `failures[operation]` to an exception to make that operation raise.
    """

    def __init__(self, *, region: str = "ord") -> None:
        self.region = region
        self.apps: dict[str, AppData] = {}
        self.role_apps: dict[tuple[str, str], list[AppData]] = {}
        self.add_ons: dict[str, AddOn] = {}
        self.machines: dict[str, list[Machine]] = {}
        self.secrets: dict[str, dict[str, str]] = {}
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.failures: dict[str, Exception] = {}
        self._next_id = 0

    def _record(self, operation: str, **kwargs: Any) -> None:
        self.calls.append((operation, kwargs))
        failure = self.failures.get(operation)
        if failure is not None:
            raise failure

    def _new_id(self, prefix: str) -> str:
        self._next_id += 1
        return f"{prefix}{self._next_id}"

    def count(self, operation: str) -> int:
        return sum(1 for name, _ in self.calls if name == operation)

    def calls_for(self, operation: str) -> list[dict[str, Any]]:
        return [kwargs for name, kwargs in self.calls if name == operation]

    def operations(self) -> list[str]:
        return [name for name, _ in self.calls]

    # GraphQL API

    async def get_app(self, *, app_name: str) -> AppData:
        self._record("get_app", app_name=app_name)
        if app_name not in self.apps:
            raise FlyNotFoundError(f"Could not find App {app_name}")
        return self.apps[app_name]

    async def get_apps_by_role(self, *, role: str, organization_id: str) -> list[AppData]:
        self._record("get_apps_by_role", role=role, organization_id=organization_id)
        return list(self.role_apps.get((role, organization_id), []))

    async def create_app(
        self,
        *,
        organization_id: str,
        name: str,
        app_role_id: Optional[str] = None,
        machines: bool = True,
    ) -> AppData:
        self._record(
            "create_app",
            organization_id=organization_id,
            name=name,
            app_role_id=app_role_id,
            machines=machines,
        )
        org = next(a.organization for a in self.apps.values() if a.organization.id == organization_id)
        app = AppData(id=self._new_id("app_"), name=name, organization=org)
        self.apps[name] = app
        if app_role_id:
            self.role_apps.setdefault((app_role_id, organization_id), []).append(app)
        return app

    async def get_add_on(self, *, name: str) -> AddOn:
        self._record("get_add_on", name=name)
        if name not in self.add_ons:
            raise FlyNotFoundError(f"Could not find AddOn {name}")
        return self.add_ons[name]

    async def create_add_on(self, *, organization_id: str, name: str, app_id: str, add_on_type: str) -> AddOn:
        self._record(
            "create_add_on",
            organization_id=organization_id,
            name=name,
            app_id=app_id,
            add_on_type=add_on_type,
        )
        add_on = AddOn(id=self._new_id("addon_"), name=name, token=f"addon-token-{name}")
        self.add_ons[name] = add_on
        return add_on

    async def create_limited_access_token(
        self,
        *,
        name: str,
        organization_id: str,
        profile: str,
        profile_params: Optional[dict[str, Any]] = None,
        expiry: Optional[str] = None,
    ) -> str:
        self._record(
            "create_limited_access_token",
            name=name,
            organization_id=organization_id,
            profile=profile,
            profile_params=profile_params,
            expiry=expiry,
        )
        return f"nats-token-{self._new_id('')}"

    async def set_secrets(self, *, app_id: str, secrets: list[SecretInput]) -> None:
        self._record("set_secrets", app_id=app_id, keys=[s.key for s in secrets])
        self.secrets.setdefault(app_id, {}).update({s.key: s.value for s in secrets})

    async def get_nearest_region(self) -> str:
        self._record("get_nearest_region")
        return self.region

    # Machines API

    def flaps_for(self, app: AppData) -> "FakeFlaps":
        return FakeFlaps(self, app.name)


class FakeFlaps:
    def __init__(self, fly: FakeFly, app_name: str) -> None:
        self._fly = fly
        self.app_name = app_name

    async def list_machines(self) -> list[Machine]:
        self._fly._record("list_machines", app_name=self.app_name)
        return list(self._fly.machines.get(self.app_name, []))

    async def launch(self, launch_input: LaunchMachineInput) -> Machine:
        self._fly._record("launch", app_name=self.app_name, launch_input=launch_input)
        machine = Machine(
            id=self._fly._new_id("m_"),
            name=launch_input.name,
            state="started",
            region=launch_input.region,
            image=launch_input.config.image,
        )
        self._fly.machines.setdefault(self.app_name, []).append(machine)
        return machine

    async def restart(self, *, machine_id: str) -> None:
        self._fly._record("restart", app_name=self.app_name, machine_id=machine_id)

    async def wait(self, *, machine_id: str, state: str = "started", timeout_seconds: int = 60) -> None:
        self._fly._record("wait", app_name=self.app_name, machine_id=machine_id, state=state)


@pytest.fixture
def acme_org() -> Organization:
    return Organization(id="org_acme", slug="acme", raw_slug="acme")


@pytest.fixture
def target_app(acme_org: Organization) -> AppData:
    return AppData(id="app_web", name="acme-web", organization=acme_org)


@pytest.fixture
def fly(target_app: AppData) -> FakeFly:
    fake = FakeFly(region="ord")
    fake.apps[target_app.name] = target_app
    return fake


@pytest.fixture
def machine_config() -> ShipperMachineConfig:
    return ShipperMachineConfig()


@pytest.fixture
def shipper_service(fly: FakeFly, machine_config: ShipperMachineConfig) -> ShipperSetupService:
    return ShipperSetupService(api=fly, flaps_factory=fly.flaps_for, machine_config=machine_config)


@pytest.fixture
def secrets_service(fly: FakeFly) -> SecretsSetupService:
    return SecretsSetupService(api=fly, deployer=MachineDeploymentService(flaps_factory=fly.flaps_for))


@pytest.fixture
def add_on_service(fly: FakeFly) -> AddOnSetupService:
    return AddOnSetupService(api=fly)


@pytest.fixture
def log_shipping_service(
    fly: FakeFly,
    add_on_service: AddOnSetupService,
    shipper_service: ShipperSetupService,
    secrets_service: SecretsSetupService,
) -> LogShippingService:
    return LogShippingService(api=fly, add_ons=add_on_service, shipper=shipper_service, secrets=secrets_service)
