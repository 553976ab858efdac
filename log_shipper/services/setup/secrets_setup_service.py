from __future__ import annotations

import logging
from typing import Sequence

from log_shipper.models.fly import AppData, SecretInput
from log_shipper.services.deploy_service import MachineDeploymentService
from log_shipper.services.fly_api_service import FlyApiService


logger = logging.getLogger(__name__)

NATS_TOKEN_SECRET = "NATS_TOKEN"
LOG_READ_PROFILE = "read_organization_apps"


def credential_name(org_slug: str) -> str:
    return f"{org_slug}-logs"


class SecretsSetupService:
    def __init__(self, *, api: FlyApiService, deployer: MachineDeploymentService) -> None:
        self._api = api
        self._deployer = deployer

    async def set_credential_and_deploy(
        self,
        shipper_app: AppData,
        provider_secrets: Sequence[SecretInput] = (),
    ) -> list[str]:
        """Write a fresh log-read token and any provider secrets, then restart the shipper.

        A new token is issued on every call; existing tokens are never looked up
        or revoked. Returns the secret keys written, in order.
        """

        org = shipper_app.organization
        token = await self._api.create_limited_access_token(
            name=credential_name(org.slug),
            organization_id=org.id,
            profile=LOG_READ_PROFILE,
            profile_params=None,
            expiry=None,
        )

        await self._api.set_secrets(
            app_id=shipper_app.id,
            secrets=[SecretInput(key=NATS_TOKEN_SECRET, value=token)],
        )
        written = [NATS_TOKEN_SECRET]
        logger.info("Set %s on log shipper app %s", NATS_TOKEN_SECRET, shipper_app.name)

        if provider_secrets:
            await self._api.set_secrets(app_id=shipper_app.id, secrets=list(provider_secrets))
            written.extend(s.key for s in provider_secrets)
            logger.info(
                "Set provider secrets on log shipper app %s: %s",
                shipper_app.name,
                ", ".join(s.key for s in provider_secrets),
            )

        restarted = await self._deployer.redeploy(shipper_app, skip_health_checks=True)
        logger.info("Redeployed log shipper app %s (machines restarted=%d)", shipper_app.name, restarted)
        return written
