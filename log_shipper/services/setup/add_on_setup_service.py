from __future__ import annotations

import logging

from log_shipper.models.fly import AddOn, AppData
from log_shipper.services.fly_api_service import FlyApiError, FlyApiService, FlyNotFoundError
from log_shipper.services.providers import ADD_ON_TYPES


logger = logging.getLogger(__name__)


class UnsupportedAddOnProviderError(ValueError):
    pass


def add_on_name(app_name: str) -> str:
    return f"{app_name}-log-shipper"


class AddOnSetupService:
    """Provisions the add-on backing an `auto` log provider."""

    def __init__(self, *, api: FlyApiService) -> None:
        self._api = api

    @staticmethod
    def _token_of(add_on: AddOn) -> str:
        if not add_on.token:
            raise FlyApiError(f"Add-on {add_on.name} has no access token")
        return add_on.token

    async def provision_auto_add_on(self, target_app: AppData, provider_slug: str) -> str:
        """Return the token of the target app's log shipper add-on, creating it if absent.

        Raises:
            UnsupportedAddOnProviderError: the add-on is missing and `provider_slug`
                has no add-on type, so nothing is submitted.
            FlyApiError: any lookup failure other than not-found, a create failure,
                or an add-on that comes back without a token.
        """

        name = add_on_name(target_app.name)

        try:
            existing = await self._api.get_add_on(name=name)
        except FlyNotFoundError as exc:
            logger.debug("Add-on %s not found (%s); creating it", name, exc)
        else:
            logger.info("Add-on %s already provisioned; reusing its token", name)
            return self._token_of(existing)

        add_on_type = ADD_ON_TYPES.get(provider_slug)
        if add_on_type is None:
            raise UnsupportedAddOnProviderError(f"Provider {provider_slug!r} cannot be provisioned as an add-on")

        created = await self._api.create_add_on(
            organization_id=target_app.organization.id,
            name=name,
            app_id=target_app.id,
            add_on_type=add_on_type,
        )
        logger.info("Created %s add-on %s for app %s", add_on_type, name, target_app.name)
        return self._token_of(created)
