from __future__ import annotations

from fastapi import APIRouter, Depends

from log_shipper.models.logs import ProviderItem, ProviderListResponse, ShipLogsRequest, ShipLogsResponse
from log_shipper.services.dependencies import get_log_shipping_service
from log_shipper.services.log_shipping_service import LogShippingService
from log_shipper.services.prompt_service import RequestPrompt
from log_shipper.services.providers import list_providers

router = APIRouter(prefix="/logs", tags=["logs"])


@router.get("/providers", response_model=ProviderListResponse)
async def get_providers() -> ProviderListResponse:
    providers = [
        ProviderItem(
            slug=p.slug,
            name=p.name,
            auto=p.auto,
            required_vars=list(p.required_vars),
            optional_vars=list(p.optional_vars),
        )
        for p in list_providers()
    ]
    return ProviderListResponse(count=len(providers), providers=providers)


@router.post("/ship", response_model=ShipLogsResponse)
async def ship_logs(
    payload: ShipLogsRequest,
    svc: LogShippingService = Depends(get_log_shipping_service),
) -> ShipLogsResponse:
    prompt = RequestPrompt(selection=payload.provider, answers=payload.secrets)
    result = await svc.run_setup(payload.app_name, prompt)
    return ShipLogsResponse(
        app_name=result.target_app_name,
        provider=result.provider_slug,
        shipper_app_id=result.shipper_app_id,
        shipper_app_name=result.shipper_app_name,
        add_on_provisioned=result.add_on_provisioned,
        secrets_written=result.secrets_written,
    )
