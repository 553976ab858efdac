import pytest

from log_shipper.models.fly import AppData, Machine, SecretInput
from log_shipper.services.fly_api_service import FlyApiError
from log_shipper.services.setup.secrets_setup_service import credential_name


@pytest.fixture
def shipper_app(fly, acme_org) -> AppData:
    app = AppData(id="s1", name="acme-auto-log-shipper", organization=acme_org)
    fly.machines[app.name] = [Machine(id="m1"), Machine(id="m2")]
    return app


def test_credential_name() -> None:
    assert credential_name("acme") == "acme-logs"


@pytest.mark.asyncio
async def test_token_is_written_then_machines_restarted(fly, secrets_service, shipper_app) -> None:
    written = await secrets_service.set_credential_and_deploy(shipper_app)

    assert written == ["NATS_TOKEN"]
    assert fly.calls_for("create_limited_access_token") == [
        {
            "name": "acme-logs",
            "organization_id": "org_acme",
            "profile": "read_organization_apps",
            "profile_params": None,
            "expiry": None,
        }
    ]
    assert fly.secrets["s1"]["NATS_TOKEN"].startswith("nats-token-")
    assert fly.operations()[-3:] == ["list_machines", "restart", "restart"]
    assert fly.count("wait") == 0


@pytest.mark.asyncio
async def test_provider_secrets_are_written_before_redeploy(fly, secrets_service, shipper_app) -> None:
    written = await secrets_service.set_credential_and_deploy(
        shipper_app,
        [SecretInput(key="DATADOG_API_KEY", value="dd")],
    )

    assert written == ["NATS_TOKEN", "DATADOG_API_KEY"]
    assert [c["keys"] for c in fly.calls_for("set_secrets")] == [["NATS_TOKEN"], ["DATADOG_API_KEY"]]
    ops = fly.operations()
    assert ops.index("restart") > max(i for i, op in enumerate(ops) if op == "set_secrets")


@pytest.mark.asyncio
async def test_token_is_rotated_on_every_call(fly, secrets_service, shipper_app) -> None:
    await secrets_service.set_credential_and_deploy(shipper_app)
    first = fly.secrets["s1"]["NATS_TOKEN"]
    await secrets_service.set_credential_and_deploy(shipper_app)

    assert fly.count("create_limited_access_token") == 2
    assert fly.secrets["s1"]["NATS_TOKEN"] != first


@pytest.mark.asyncio
async def test_secret_write_failure_skips_redeploy(fly, secrets_service, shipper_app) -> None:
    fly.failures["set_secrets"] = FlyApiError("denied")

    with pytest.raises(FlyApiError, match="denied"):
        await secrets_service.set_credential_and_deploy(shipper_app)

    assert fly.count("create_limited_access_token") == 1
    assert fly.count("restart") == 0
