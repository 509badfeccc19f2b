"""Protocol layer: request framing, command builders, reply and discovery parsing."""

from .framing import build_frame, parse_frame
from .commands import Command, build_command
from .discovery import parse_discovery_packet
