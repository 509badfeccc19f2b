"""Discovery result model."""

from __future__ import annotations

from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class ScanResult:
    """A module found by a UDP discovery scan."""

    ip_address: str
    host_name: str
    device_id: int
    mac_address: str

    def to_dict(self) -> dict:
        return asdict(self)
