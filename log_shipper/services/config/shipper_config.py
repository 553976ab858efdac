from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import ClassVar

from log_shipper.models.fly import LaunchMachineInput, MachineConfig, MachineGuest


@dataclass(frozen=True)
class ShipperMachineConfig:
    """Shape of the log shipper machine launched into a shipper app.

    Everything except the image is fixed; the image can be overridden with
    LOG_SHIPPER_IMAGE to roll out a new shipper build.
    """

    _DEFAULT_IMAGE: ClassVar[str] = "flyio/log-shipper:auto-a14aa63"
    image: str = _DEFAULT_IMAGE
    machine_name: str = "log-shipper"
    cpu_kind: str = "shared"
    cpus: int = 1
    memory_mb: int = 256
    metadata: dict[str, str] = field(
        default_factory=lambda: {
            "fly_platform_version": "v2",
            "fly-managed-postgres": "true",
            "managed-by-fly-deploy": "true",
        }
    )

    @staticmethod
    def from_env() -> "ShipperMachineConfig":
        image = (os.getenv("LOG_SHIPPER_IMAGE") or "").strip() or ShipperMachineConfig._DEFAULT_IMAGE
        return ShipperMachineConfig(image=image)

    def to_launch_input(self, *, region: str) -> LaunchMachineInput:
        return LaunchMachineInput(
            name=self.machine_name,
            region=region,
            config=MachineConfig(
                guest=MachineGuest(cpu_kind=self.cpu_kind, cpus=self.cpus, memory_mb=self.memory_mb),
                image=self.image,
                metadata=dict(self.metadata),
            ),
        )
