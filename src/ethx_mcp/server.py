"""MCP server entry point for Devantech ETHx modules.

Exposes network discovery and module I/O as tools and resources via the
Model Context Protocol using the official Python MCP SDK with stdio
transport.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from mcp.server.fastmcp import FastMCP

from .exceptions import ETHError
from .models.capabilities import MODULE_CAPABILITIES
from .models.scan import ScanResult
from .module import ETHModule
from .protocol.parser import format_mac, output_states
from .transport.tcp_connection import DEFAULT_PORT
from .transport.udp_scanner import ETHScanner

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "ethx",
    instructions="MCP server for Devantech ETHx network relay and I/O modules",
)

# Global connection state
_module: ETHModule | None = None
_scan_results: list[ScanResult] = []


def _get_module() -> ETHModule:
    """Get the connected module, raising if not connected."""
    if _module is None or not _module.connected:
        raise RuntimeError(
            "Not connected to a module. Use the 'connect' tool first."
        )
    return _module


def _error(e: Exception) -> dict[str, Any]:
    return {"error": str(e)}


# ─── DISCOVERY TOOLS ──────────────────────────────────────────────────

@mcp.tool()
def scan_network(duration: float = 3.0) -> dict[str, Any]:
    """Broadcast a discovery probe and list the ETHx modules that answer.

    Args:
        duration: Seconds to listen for replies (0.5-30, default 3).
    """
    global _scan_results
    if not 0.5 <= duration <= 30:
        return {"error": "Duration must be 0.5-30 seconds"}

    try:
        results = ETHScanner().scan(duration)
    except ETHError as e:
        return _error(e)

    _scan_results = results
    modules = []
    for result in results:
        entry = result.to_dict()
        cap = MODULE_CAPABILITIES.get(result.device_id)
        entry["model"] = cap.name if cap else "unknown"
        modules.append(entry)
    return {"modules": modules, "count": len(modules)}


# ─── CONNECTION TOOLS ─────────────────────────────────────────────────

@mcp.tool()
def connect(
    host: str,
    port: int = DEFAULT_PORT,
    password: str | None = None,
) -> dict[str, Any]:
    """Open a TCP connection to a module and identify it.

    Args:
        host: IP address or host name of the module.
        port: TCP command port (default 17494).
        password: Optional password for protected modules.
    """
    global _module
    if _module is not None and _module.connected:
        return {
            "connected": True,
            "message": "Already connected",
            "model": _module.name,
        }

    try:
        _module = ETHModule.connect(host, port, password=password)
    except (ETHError, ValueError) as e:
        return _error(e)

    result: dict[str, Any] = {"connected": True}
    result.update(_module.identity.to_dict())
    return result


@mcp.tool()
def disconnect() -> dict[str, bool]:
    """Close the connection to the module."""
    global _module
    if _module is None:
        return {"disconnected": True}
    _module.close()
    _module = None
    return {"disconnected": True}


@mcp.tool()
def get_module_info() -> dict[str, Any]:
    """Re-read device type, hardware and firmware versions (command 0x10)."""
    module = _get_module()
    try:
        identity = module.get_module_info()
    except ETHError as e:
        return _error(e)
    return identity.to_dict()


@mcp.tool()
def get_serial_number() -> dict[str, Any]:
    """Read the module's MAC address, which doubles as its serial number."""
    module = _get_module()
    try:
        serial = module.get_serial_number()
    except ETHError as e:
        return _error(e)
    return {"serial_number": format_mac(serial)}


@mcp.tool()
def get_power_supply() -> dict[str, Any]:
    """Read the module's supply voltage."""
    module = _get_module()
    try:
        raw = module.get_power_supply()
    except ETHError as e:
        return _error(e)
    return {"raw": raw, "volts": raw / 10}


@mcp.tool()
def get_unlock_time() -> dict[str, Any]:
    """Seconds until a password-protected module locks again (0 = locked)."""
    module = _get_module()
    try:
        return {"unlock_time": module.get_unlock_time()}
    except ETHError as e:
        return _error(e)


@mcp.tool()
def logout() -> dict[str, Any]:
    """Lock a password-protected module immediately."""
    module = _get_module()
    try:
        status = module.logout()
    except ETHError as e:
        return _error(e)
    return {"status": status, "success": status == 1}


# ─── DIGITAL I/O TOOLS ───────────────────────────────────────────────

@mcp.tool()
def get_digital_outputs() -> dict[str, Any]:
    """Read the state of every digital output (relay)."""
    module = _get_module()
    try:
        raw = module.get_digital_output_states()
    except ETHError as e:
        return _error(e)
    return {"raw_hex": raw.hex(" "), "outputs": output_states(raw)}


@mcp.tool()
def get_digital_inputs() -> dict[str, Any]:
    """Read the state of every digital input."""
    module = _get_module()
    try:
        raw = module.get_digital_input_states()
    except ETHError as e:
        return _error(e)
    return {"raw_hex": raw.hex(" "), "inputs": output_states(raw)}


@mcp.tool()
def set_digital_output(channel: int, active: bool, time: int = 0) -> dict[str, Any]:
    """Switch a digital output (relay) on or off.

    Args:
        channel: Output number, starting at 1.
        active: True to energise, False to release.
        time: Pulse length in 100ms units (0-255); 0 latches the state.
    """
    module = _get_module()
    try:
        if active:
            status = module.digital_output_active(channel, time)
        else:
            status = module.digital_output_inactive(channel, time)
    except (ETHError, ValueError) as e:
        return _error(e)
    return {"channel": channel, "active": active, "success": status == 1}


# ─── ANALOGUE I/O TOOLS ──────────────────────────────────────────────

@mcp.tool()
def read_analogue_input(channel: int, twelve_bit: bool = False) -> dict[str, Any]:
    """Read an analogue input.

    Args:
        channel: Input number, starting at 1.
        twelve_bit: Use the 12-bit conversion where the module supports it.
    """
    module = _get_module()
    try:
        if twelve_bit:
            value = module.read_analogue_12bit(channel)
        else:
            value = module.read_analogue(channel)
    except (ETHError, ValueError) as e:
        return _error(e)
    return {"channel": channel, "value": value, "twelve_bit": twelve_bit}


@mcp.tool()
def set_analogue_output(channel: int, value: int, time: int = 0) -> dict[str, Any]:
    """Set an analogue output level.

    Args:
        channel: Output number, starting at 1.
        value: Output level (0-255).
        time: Hold time in 100ms units (0-255); 0 holds indefinitely.
    """
    module = _get_module()
    try:
        status = module.set_analogue_voltage(channel, value, time)
    except (ETHError, ValueError) as e:
        return _error(e)
    return {"channel": channel, "value": value, "success": status == 1}


# ─── MCP RESOURCES ───────────────────────────────────────────────────

@mcp.resource("ethx://module/info")
def resource_module_info() -> str:
    """Connected module identity and capabilities."""
    if _module is None or not _module.connected:
        return json.dumps({"connected": False})
    info: dict[str, Any] = {"connected": True}
    info.update(_module.identity.to_dict())
    return json.dumps(info)


@mcp.resource("ethx://catalog/modules")
def resource_module_catalog() -> str:
    """All known module models with their channel counts."""
    models = [cap.to_dict() for cap in MODULE_CAPABILITIES.values()]
    return json.dumps({"modules": models, "count": len(models)})


@mcp.resource("ethx://scan/results")
def resource_scan_results() -> str:
    """Modules found by the most recent scan."""
    return json.dumps({"modules": [r.to_dict() for r in _scan_results]})


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main():
    """Run the MCP server with stdio transport."""
    logging.basicConfig(level=logging.INFO)
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
