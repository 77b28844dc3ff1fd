# =============================================================================
# Author      : awiones
# Created     : 2025-02-18
# License     : GNU General Public License v3.0
# Description : This code was developed by awiones. It is a camera auditing
#               tool designed to discover RTSP devices on a network, guess
#               their media routes and credentials, and report which streams
#               are actually accessible.
# =============================================================================


import re
from dataclasses import dataclass
from typing import Optional, Tuple

from raidkit.models import Credentials

DEFAULT_PORTS = ("554", "5554", "8554")
DEFAULT_SCAN_SPEED = 4
DEFAULT_TIMEOUT = 2.0  # seconds
DEFAULT_ATTACK_INTERVAL = 0.0

PORT_SPEC = re.compile(r"^(\d{1,5})(?:-(\d{1,5}))?$")


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class ScanConfig:
    """Settings for one scan, built once and never mutated"""
    targets: Tuple[str, ...] = ()
    ports: Tuple[str, ...] = DEFAULT_PORTS
    scan_speed: int = DEFAULT_SCAN_SPEED
    timeout: float = DEFAULT_TIMEOUT
    attack_interval: float = DEFAULT_ATTACK_INTERVAL
    debug: bool = False
    verbose: bool = False
    username: Optional[str] = None
    password: Optional[str] = None
    routes_dictionary_path: Optional[str] = None
    credentials_dictionary_path: Optional[str] = None
    screenshot_dir: Optional[str] = None
    output: Optional[str] = None

    def __post_init__(self):
        if self.timeout <= 0:
            raise ConfigError(f"Timeout must be positive, got {self.timeout}")
        if self.attack_interval < 0:
            raise ConfigError(f"Attack interval cannot be negative, got {self.attack_interval}")
        if not 0 <= self.scan_speed <= 5:
            raise ConfigError(f"Scan speed must be between 0 and 5, got {self.scan_speed}")
        for port in self.ports:
            validate_port_spec(port)

    @classmethod
    def from_args(cls, args) -> "ScanConfig":
        """Build the configuration from parsed command line arguments"""
        return cls(
            targets=tuple(split_list(args.targets)),
            ports=tuple(split_list(args.ports)) or DEFAULT_PORTS,
            scan_speed=args.scan_speed,
            timeout=args.timeout / 1000.0,
            attack_interval=args.attack_interval / 1000.0,
            debug=args.debug,
            verbose=args.verbose,
            username=args.username,
            password=args.password,
            routes_dictionary_path=args.custom_routes,
            credentials_dictionary_path=args.custom_credentials,
            screenshot_dir=args.screenshots,
            output=args.output,
        )

    def credential_override(self) -> Optional[Credentials]:
        """Fixed pair that replaces the dictionary, if the user gave one"""
        if self.username is None and self.password is None:
            return None
        return Credentials(self.username or "", self.password or "")


def validate_port_spec(spec: str) -> None:
    match = PORT_SPEC.match(spec.strip())
    if not match:
        raise ConfigError(f"Invalid port specification: {spec!r}")
    low = int(match.group(1))
    high = int(match.group(2) or low)
    if not (1 <= low <= 65535 and 1 <= high <= 65535) or high < low:
        raise ConfigError(f"Port out of range: {spec!r}")


def split_list(values) -> list:
    """Flatten repeated and comma separated option values"""
    items = []
    for value in values or []:
        items.extend(part.strip() for part in value.split(",") if part.strip())
    return items
