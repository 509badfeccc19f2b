"""Identity of a connected module."""

from __future__ import annotations

from dataclasses import dataclass

from .capabilities import ModuleCapabilities, get_capabilities


@dataclass(frozen=True)
class ModuleIdentity:
    """Device type and versions reported by the module-info command.

    Built once per connection; the capability record is resolved from the
    device type at construction.
    """

    device_id: int
    hardware_version: int
    firmware_version: int
    capabilities: ModuleCapabilities

    @classmethod
    def from_info(
        cls, device_id: int, hardware_version: int, firmware_version: int
    ) -> ModuleIdentity:
        return cls(
            device_id=device_id,
            hardware_version=hardware_version,
            firmware_version=firmware_version,
            capabilities=get_capabilities(device_id),
        )

    @property
    def name(self) -> str:
        return self.capabilities.name

    def to_dict(self) -> dict:
        result = {
            "device_id": self.device_id,
            "hardware_version": self.hardware_version,
            "firmware_version": self.firmware_version,
        }
        result.update(self.capabilities.to_dict())
        return result
