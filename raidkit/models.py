# =============================================================================
# Author      : awiones
# Created     : 2025-02-18
# License     : GNU General Public License v3.0
# Description : This code was developed by awiones. It is a camera auditing
#               tool designed to discover RTSP devices on a network, guess
#               their media routes and credentials, and report which streams
#               are actually accessible.
# =============================================================================


from dataclasses import dataclass, field
from enum import IntEnum
from itertools import product
from typing import Dict, Iterator, List, Optional, Tuple


class AuthType(IntEnum):
    UNKNOWN = -1
    NONE = 0
    BASIC = 1
    DIGEST = 2

    @property
    def label(self) -> str:
        return {
            AuthType.UNKNOWN: "unknown",
            AuthType.NONE: "no",
            AuthType.BASIC: "basic",
            AuthType.DIGEST: "digest",
        }[self]


@dataclass(frozen=True)
class Credentials:
    username: str
    password: str

    def __str__(self) -> str:
        return f"{self.username}:{self.password}"


@dataclass
class CredentialDictionary:
    """Usernames and passwords tried in nested order, username first"""
    usernames: List[str] = field(default_factory=list)
    passwords: List[str] = field(default_factory=list)

    @classmethod
    def single(cls, username: str, password: str) -> "CredentialDictionary":
        return cls([username], [password])

    def pairs(self) -> Iterator[Credentials]:
        for username, password in product(self.usernames, self.passwords):
            yield Credentials(username, password)

    def __len__(self) -> int:
        return len(self.usernames) * len(self.passwords)


@dataclass
class Route:
    path: str
    auth_type: AuthType = AuthType.UNKNOWN
    credentials_found: bool = False
    available: bool = False
    image_url: Optional[str] = None

    def to_dict(self) -> Dict:
        return {
            "route": self.path,
            "authenticationType": int(self.auth_type),
            "credentialsFound": self.credentials_found,
            "available": self.available,
            "imageUrl": self.image_url or "",
        }


@dataclass
class Device:
    address: str
    port: int
    device_label: str = ""
    credentials: Optional[Credentials] = None
    routes: List[Route] = field(default_factory=list)

    def __post_init__(self):
        if not self.address:
            raise ValueError("Device address is required")
        if not 1 <= int(self.port) <= 65535:
            raise ValueError(f"Invalid port {self.port} for {self.address}")
        self.port = int(self.port)

    @property
    def key(self) -> Tuple[str, int]:
        return (self.address, self.port)

    @property
    def auth_type(self) -> AuthType:
        """Device-wide auth type, taken from the first route that knows it"""
        for route in self.routes:
            if route.auth_type != AuthType.UNKNOWN:
                return route.auth_type
        return AuthType.UNKNOWN

    def route(self, path: str) -> Optional[Route]:
        for route in self.routes:
            if route.path == path:
                return route
        return None

    def rtsp_url(self, path: str = "", with_credentials: bool = True) -> str:
        userinfo = ""
        if with_credentials and self.credentials:
            userinfo = f"{self.credentials}@"
        host = f"[{self.address}]" if ":" in self.address else self.address
        return f"rtsp://{userinfo}{host}:{self.port}/{path.lstrip('/')}"

    def to_dict(self) -> Dict:
        return {
            "device": self.device_label,
            "address": self.address,
            "port": self.port,
            "username": self.credentials.username if self.credentials else "",
            "password": self.credentials.password if self.credentials else "",
            "routes": [route.to_dict() for route in self.routes],
        }
