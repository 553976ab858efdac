from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class ProviderItem(BaseModel):
    slug: str
    name: str
    auto: bool
    required_vars: list[str] = Field(default_factory=list)
    optional_vars: list[str] = Field(default_factory=list)


class ProviderListResponse(BaseModel):
    count: int
    providers: list[ProviderItem]


class ShipLogsRequest(BaseModel):
    app_name: str = Field(..., min_length=1, description="App whose organization logs should be shipped")
    provider: Optional[str] = Field(default=None, description="Provider slug or display name")
    secrets: dict[str, str] = Field(default_factory=dict, description="Values for the provider's env vars")


class ShipLogsResponse(BaseModel):
    app_name: str
    provider: str
    shipper_app_id: str
    shipper_app_name: str
    add_on_provisioned: bool
    secrets_written: list[str]
