from __future__ import annotations

import logging
from dataclasses import dataclass, field

from log_shipper.models.fly import SecretInput
from log_shipper.services.fly_api_service import FlyApiService
from log_shipper.services.prompt_service import RequestPrompt
from log_shipper.services.providers import list_providers
from log_shipper.services.setup.add_on_setup_service import AddOnSetupService
from log_shipper.services.setup.secrets_setup_service import SecretsSetupService
from log_shipper.services.setup.shipper_setup_service import ShipperSetupService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ShipLogsResult:
    target_app_name: str
    provider_slug: str
    shipper_app_id: str
    shipper_app_name: str
    add_on_provisioned: bool = False
    secrets_written: list[str] = field(default_factory=list)


class LogShippingService:
    def __init__(
        self,
        *,
        api: FlyApiService,
        add_ons: AddOnSetupService,
        shipper: ShipperSetupService,
        secrets: SecretsSetupService,
    ) -> None:
        self._api = api
        self._add_ons = add_ons
        self._shipper = shipper
        self._secrets = secrets

    async def run_setup(self, app_name: str, prompt: RequestPrompt) -> ShipLogsResult:
        """Ship `app_name`'s organization logs to the provider chosen through `prompt`.

        Steps run strictly in order and the first failure aborts the run.
        Resources created by earlier steps are left in place; running setup
        again reuses them.

        Steps:
        1) Select a provider.
        2) Provision the provider add-on (auto providers) or collect the
           provider's secrets (everything else).
        3) Ensure the organization's log shipper app exists.
        4) Ensure the log shipper app has a machine.
        5) Write a fresh NATS token plus the provider secrets and restart the
           shipper.
        """

        target_app = await self._api.get_app(app_name=app_name)
        target_org = target_app.organization

        provider = prompt.select_provider(list_providers())
        logger.info("Log shipping setup for app %s: provider=%s", target_app.name, provider.slug)

        provider_secrets: list[SecretInput] = []
        add_on_provisioned = False
        if provider.auto:
            token = await self._add_ons.provision_auto_add_on(target_app, provider.slug)
            add_on_provisioned = True
            if provider.token_secret:
                provider_secrets.append(SecretInput(key=provider.token_secret, value=token))
        else:
            provider_secrets = prompt.collect_provider_secrets(provider)

        shipper_app = await self._shipper.ensure_shipper_app(target_org)
        logger.info("Using log shipper app %s", shipper_app.name)

        await self._shipper.ensure_shipper_machine(shipper_app)

        secrets_written = await self._secrets.set_credential_and_deploy(shipper_app, provider_secrets)

        return ShipLogsResult(
            target_app_name=target_app.name,
            provider_slug=provider.slug,
            shipper_app_id=shipper_app.id,
            shipper_app_name=shipper_app.name,
            add_on_provisioned=add_on_provisioned,
            secrets_written=secrets_written,
        )
