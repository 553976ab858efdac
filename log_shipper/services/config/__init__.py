"""Configuration package (Facade).

Re-exports the public config types so callers import from a single path:

	from log_shipper.services.config import FlyApiConfig
"""

from log_shipper.services.config.fly_config import FlyApiConfig, FlyConfigError
from log_shipper.services.config.shipper_config import ShipperMachineConfig

__all__ = ["FlyApiConfig", "FlyConfigError", "ShipperMachineConfig"]
