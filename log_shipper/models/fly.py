from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field


class Organization(BaseModel):
    id: str
    slug: str
    raw_slug: str = Field(..., description="Organization slug as stored, before any personal-org aliasing")

    @staticmethod
    def from_graphql(obj: dict[str, Any]) -> "Organization":
        return Organization(
            id=str(obj.get("id")),
            slug=str(obj.get("slug")),
            raw_slug=str(obj.get("rawSlug") or obj.get("slug")),
        )


class AppData(BaseModel):
    id: str
    name: str
    organization: Organization

    @staticmethod
    def from_graphql(obj: dict[str, Any]) -> "AppData":
        return AppData(
            id=str(obj.get("id")),
            name=str(obj.get("name")),
            organization=Organization.from_graphql(obj.get("organization") or {}),
        )


class AddOn(BaseModel):
    id: Optional[str] = None
    name: str
    token: str

    @staticmethod
    def from_graphql(obj: dict[str, Any]) -> "AddOn":
        return AddOn(
            id=obj.get("id"),
            name=str(obj.get("name")),
            token=str(obj.get("token") or ""),
        )


class SecretInput(BaseModel):
    key: str
    value: str


class MachineGuest(BaseModel):
    cpu_kind: str = "shared"
    cpus: int = 1
    memory_mb: int = 256

    def to_api(self) -> dict[str, Any]:
        return {"cpu_kind": self.cpu_kind, "cpus": self.cpus, "memory_mb": self.memory_mb}


class MachineConfig(BaseModel):
    guest: MachineGuest
    image: str
    metadata: dict[str, str] = Field(default_factory=dict)

    def to_api(self) -> dict[str, Any]:
        return {"guest": self.guest.to_api(), "image": self.image, "metadata": dict(self.metadata)}


class LaunchMachineInput(BaseModel):
    name: str
    region: str
    config: MachineConfig

    def to_api(self) -> dict[str, Any]:
        return {"name": self.name, "region": self.region, "config": self.config.to_api()}


class Machine(BaseModel):
    id: str
    name: Optional[str] = None
    state: Optional[str] = None
    region: Optional[str] = None
    image: Optional[str] = None

    @staticmethod
    def from_api(obj: dict[str, Any]) -> "Machine":
        config = obj.get("config") or {}
        return Machine(
            id=str(obj.get("id")),
            name=obj.get("name"),
            state=obj.get("state"),
            region=obj.get("region"),
            image=config.get("image") if isinstance(config, dict) else None,
        )
