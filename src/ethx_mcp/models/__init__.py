"""Data models for module capabilities, identities and scan results."""

from .capabilities import ModuleCapabilities, MODULE_CAPABILITIES, get_capabilities
from .module import ModuleIdentity
from .scan import ScanResult
