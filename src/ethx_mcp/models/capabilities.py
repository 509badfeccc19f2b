"""Per-model capability table.

Maps the device-type code a module reports to its name and the number of
channels of each kind. Unknown codes resolve to a record with no channels,
so every channel-dependent command is rejected locally for them.
"""

from __future__ import annotations

from dataclasses import dataclass

ETH002_ID = 18
ETH008_ID = 19
ETH484_ID = 20
ETH8020_ID = 21
ETH0621_ID = 23
ETH044_ID = 29
ETH1620_ID = 51
ETH1610_ID = 52
ETH24V008_ID = 54
ETH_UPLOADER_ID = 200

UNKNOWN_NAME = "none"


@dataclass(frozen=True)
class ModuleCapabilities:
    """What a given module model provides."""

    device_id: int
    name: str = UNKNOWN_NAME
    digital_output_bytes: int = 0  # bytes returned by get digital outputs
    digital_input_bytes: int = 0   # bytes returned by get digital inputs
    analogue_input_count: int = 0
    analogue_output_count: int = 0

    @property
    def digital_output_count(self) -> int:
        """Highest addressable digital output (one bit per output)."""
        return self.digital_output_bytes * 8

    @property
    def known(self) -> bool:
        return self.name != UNKNOWN_NAME

    def to_dict(self) -> dict:
        return {
            "device_id": self.device_id,
            "name": self.name,
            "digital_output_bytes": self.digital_output_bytes,
            "digital_input_bytes": self.digital_input_bytes,
            "analogue_inputs": self.analogue_input_count,
            "analogue_outputs": self.analogue_output_count,
        }


MODULE_CAPABILITIES: dict[int, ModuleCapabilities] = {
    cap.device_id: cap
    for cap in (
        ModuleCapabilities(ETH002_ID, "ETH002", digital_output_bytes=1),
        ModuleCapabilities(ETH008_ID, "ETH008", digital_output_bytes=1),
        ModuleCapabilities(
            ETH484_ID, "ETH484",
            digital_output_bytes=2, digital_input_bytes=2, analogue_input_count=4,
        ),
        ModuleCapabilities(
            ETH8020_ID, "ETH8020",
            digital_output_bytes=3, digital_input_bytes=4, analogue_input_count=8,
        ),
        ModuleCapabilities(
            ETH0621_ID, "ETH0621",
            digital_output_bytes=3, digital_input_bytes=4,
            analogue_input_count=1, analogue_output_count=2,
        ),
        ModuleCapabilities(
            ETH044_ID, "ETH044",
            digital_output_bytes=2, digital_input_bytes=2, analogue_output_count=4,
        ),
        ModuleCapabilities(
            ETH1620_ID, "ETH1620", digital_output_bytes=3, analogue_input_count=16,
        ),
        ModuleCapabilities(
            ETH1610_ID, "ETH1610", digital_output_bytes=2, analogue_input_count=16,
        ),
        ModuleCapabilities(
            ETH24V008_ID, "ETH24V008", digital_output_bytes=1, digital_input_bytes=1,
        ),
    )
}


def get_capabilities(device_id: int) -> ModuleCapabilities:
    """Look up a device-type code, defaulting to a no-channel record."""
    return MODULE_CAPABILITIES.get(device_id, ModuleCapabilities(device_id))
