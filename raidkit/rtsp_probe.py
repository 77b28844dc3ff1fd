# =============================================================================
# Author      : awiones
# Created     : 2025-02-18
# License     : GNU General Public License v3.0
# Description : This code was developed by awiones. It is a camera auditing
#               tool designed to discover RTSP devices on a network, guess
#               their media routes and credentials, and report which streams
#               are actually accessible.
# =============================================================================


import base64
import hashlib
import logging
import os
import re
import socket
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
from urllib.parse import unquote, urlsplit

from raidkit.models import AuthType, Credentials

# RTSP status codes with a meaning for the attacks
RTSP_OK = 200
RTSP_UNAUTHORIZED = 401
RTSP_FORBIDDEN = 403
RTSP_NOT_FOUND = 404

# Advertised authentication bitmask
AUTH_NONE = 0
AUTH_BASIC = 1
AUTH_DIGEST = 2

DESCRIBE = "DESCRIBE"
SETUP = "SETUP"

DEFAULT_RTSP_PORT = 554
DEFAULT_TRANSPORT = "RTP/AVP;unicast;client_port=33332-33333"
USER_AGENT = "CamRaid RTSP Prober"

MAX_HEADER_SIZE = 65536
STATUS_LINE = re.compile(r"^RTSP/\d\.\d\s+(\d{3})")
AUTH_PARAM = re.compile(r'(\w+)\s*=\s*(?:"([^"]*)"|([^\s,]+))')


class ProbeError(Exception):
    """A single RTSP request could not be completed"""


@dataclass
class ProbeResult:
    status_code: int
    auth_methods: int = AUTH_NONE
    challenges: Dict[str, Dict[str, str]] = field(default_factory=dict)


def auth_type_from_bitmask(bitmask: int) -> AuthType:
    """Map an advertised auth bitmask to the scheme to use, weakest first"""
    if bitmask == AUTH_NONE:
        return AuthType.NONE
    if bitmask & AUTH_BASIC:
        return AuthType.BASIC
    if bitmask & AUTH_DIGEST:
        return AuthType.DIGEST
    return AuthType.UNKNOWN


def parse_challenges(values: List[str]) -> Dict[str, Dict[str, str]]:
    """Parse WWW-Authenticate header values into {scheme: params}"""
    challenges = {}
    for value in values:
        scheme, _, rest = value.strip().partition(" ")
        if not scheme:
            continue
        params = {}
        for match in AUTH_PARAM.finditer(rest):
            name, quoted, bare = match.groups()
            params[name.lower()] = quoted if quoted is not None else bare
        challenges[scheme.lower()] = params
    return challenges


def challenges_bitmask(challenges: Dict[str, Dict[str, str]]) -> int:
    bitmask = AUTH_NONE
    if "basic" in challenges:
        bitmask |= AUTH_BASIC
    if "digest" in challenges:
        bitmask |= AUTH_DIGEST
    return bitmask


def _md5(value: str) -> str:
    return hashlib.md5(value.encode()).hexdigest()


def basic_authorization(credentials: Credentials) -> str:
    token = base64.b64encode(f"{credentials.username}:{credentials.password}".encode()).decode()
    return f"Basic {token}"


def digest_authorization(credentials: Credentials, method: str, uri: str,
                         challenge: Dict[str, str], cnonce: Optional[str] = None) -> str:
    realm = challenge.get("realm", "")
    nonce = challenge.get("nonce", "")
    ha1 = _md5(f"{credentials.username}:{realm}:{credentials.password}")
    ha2 = _md5(f"{method}:{uri}")

    parts = [
        f'username="{credentials.username}"',
        f'realm="{realm}"',
        f'nonce="{nonce}"',
        f'uri="{uri}"',
    ]

    qop_options = [q.strip() for q in challenge.get("qop", "").split(",") if q.strip()]
    if "auth" in qop_options:
        nc = "00000001"
        cnonce = cnonce or os.urandom(8).hex()
        response = _md5(f"{ha1}:{nonce}:{nc}:{cnonce}:auth:{ha2}")
        parts.append(f'response="{response}"')
        parts.extend(["qop=auth", f"nc={nc}", f'cnonce="{cnonce}"'])
    else:
        response = _md5(f"{ha1}:{nonce}:{ha2}")
        parts.append(f'response="{response}"')

    if "algorithm" in challenge:
        parts.append(f"algorithm={challenge['algorithm']}")
    if "opaque" in challenge:
        parts.append(f'opaque="{challenge["opaque"]}"')
    return "Digest " + ", ".join(parts)


class RTSPProbe:
    """One RTSP session: a connection and a CSeq counter owned by one worker.

    Instances must not be shared between threads. The connection is kept
    open between requests to the same host and closed on exit.
    """

    def __init__(self, timeout: float = 2.0, verbose: bool = False, user_agent: str = USER_AGENT):
        self.timeout = timeout
        self.verbose = verbose
        self.user_agent = user_agent
        self.cseq = 0
        self._sock: Optional[socket.socket] = None
        self._peer: Optional[Tuple[str, int]] = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def close(self) -> None:
        if self._sock is not None:
            try:
                self._sock.close()
            except OSError:
                pass
        self._sock = None
        self._peer = None

    def describe(self, url: str, credentials: Optional[Credentials] = None,
                 auth_type: AuthType = AuthType.UNKNOWN) -> ProbeResult:
        return self.probe(url, credentials, auth_type, DESCRIBE)

    def setup(self, url: str, credentials: Optional[Credentials] = None,
              auth_type: AuthType = AuthType.UNKNOWN,
              transport: str = DEFAULT_TRANSPORT) -> ProbeResult:
        return self.probe(url, credentials, auth_type, SETUP, transport=transport)

    def probe(self, url: str, credentials: Optional[Credentials], auth_type: AuthType,
              request_kind: str, transport: str = DEFAULT_TRANSPORT) -> ProbeResult:
        """Send one DESCRIBE or SETUP, answering an auth challenge if needed"""
        host, port, uri, url_credentials = split_rtsp_url(url)
        credentials = credentials or url_credentials
        deadline = time.monotonic() + self.timeout

        headers = {}
        if request_kind == DESCRIBE:
            headers["Accept"] = "application/sdp"
        elif request_kind == SETUP:
            headers["Transport"] = transport
        else:
            raise ValueError(f"Unsupported RTSP request: {request_kind}")

        preemptive = credentials is not None and auth_type == AuthType.BASIC
        if preemptive:
            headers["Authorization"] = basic_authorization(credentials)

        result = self._exchange(request_kind, host, port, uri, headers, deadline)

        if (result.status_code == RTSP_UNAUTHORIZED and credentials is not None
                and not preemptive and auth_type != AuthType.NONE):
            authorization = self._answer_challenge(result, credentials, auth_type, request_kind, uri)
            if authorization:
                headers["Authorization"] = authorization
                retry = self._exchange(request_kind, host, port, uri, headers, deadline)
                retry.auth_methods |= result.auth_methods
                result = retry

        if self.verbose:
            logging.debug(f"{request_kind} {uri} RTSP/1.0 > {result.status_code}")
        return result

    def _answer_challenge(self, result: ProbeResult, credentials: Credentials,
                          auth_type: AuthType, method: str, uri: str) -> Optional[str]:
        challenges = result.challenges
        if auth_type in (AuthType.DIGEST, AuthType.UNKNOWN) and "digest" in challenges:
            return digest_authorization(credentials, method, uri, challenges["digest"])
        if auth_type == AuthType.UNKNOWN and "basic" in challenges:
            return basic_authorization(credentials)
        return None

    def _exchange(self, method: str, host: str, port: int, uri: str,
                  headers: Dict[str, str], deadline: float) -> ProbeResult:
        self.cseq += 1
        lines = [f"{method} {uri} RTSP/1.0", f"CSeq: {self.cseq}", f"User-Agent: {self.user_agent}"]
        lines.extend(f"{name}: {value}" for name, value in headers.items())
        request = ("\r\n".join(lines) + "\r\n\r\n").encode()

        reused = self._sock is not None and self._peer == (host, port)
        try:
            return self._send_and_read(request, host, port, deadline)
        except ProbeError:
            if not reused:
                raise
            # The server may have dropped the idle connection
            self.close()
            return self._send_and_read(request, host, port, deadline)

    def _send_and_read(self, request: bytes, host: str, port: int, deadline: float) -> ProbeResult:
        try:
            sock = self._connect(host, port, deadline)
            sock.settimeout(_remaining(deadline))
            sock.sendall(request)
            head, leftover = self._read_head(sock, deadline)
            status_code, header_list = parse_response_head(head)
            self._drain_body(sock, header_list, leftover, deadline)
        except (OSError, socket.timeout) as e:
            self.close()
            raise ProbeError(f"{host}:{port}: {e}") from e
        except ProbeError:
            self.close()
            raise

        if any(name == "connection" and value.lower() == "close" for name, value in header_list):
            self.close()

        challenges = parse_challenges([v for n, v in header_list if n == "www-authenticate"])
        return ProbeResult(status_code, challenges_bitmask(challenges), challenges)

    def _connect(self, host: str, port: int, deadline: float) -> socket.socket:
        if self._sock is not None and self._peer == (host, port):
            return self._sock
        self.close()
        try:
            self._sock = socket.create_connection((host, port), timeout=_remaining(deadline))
        except socket.gaierror as e:
            raise ProbeError(f"Cannot resolve {host}: {e}") from e
        self._peer = (host, port)
        return self._sock

    @staticmethod
    def _read_head(sock: socket.socket, deadline: float) -> Tuple[bytes, bytes]:
        buffer = b""
        while b"\r\n\r\n" not in buffer:
            if len(buffer) > MAX_HEADER_SIZE:
                raise ProbeError("Response headers too large")
            sock.settimeout(_remaining(deadline))
            chunk = sock.recv(4096)
            if not chunk:
                raise ProbeError("Connection closed before response headers")
            buffer += chunk
        head, _, leftover = buffer.partition(b"\r\n\r\n")
        return head, leftover

    @staticmethod
    def _drain_body(sock: socket.socket, header_list, leftover: bytes, deadline: float) -> None:
        length = 0
        for name, value in header_list:
            if name == "content-length" and value.isdigit():
                length = int(value)
        remaining = length - len(leftover)
        while remaining > 0:
            sock.settimeout(_remaining(deadline))
            chunk = sock.recv(min(remaining, 65536))
            if not chunk:
                break
            remaining -= len(chunk)


def parse_response_head(head: bytes) -> Tuple[int, List[Tuple[str, str]]]:
    lines = head.decode("utf-8", errors="ignore").split("\r\n")
    match = STATUS_LINE.match(lines[0])
    if not match:
        raise ProbeError(f"Malformed RTSP status line: {lines[0]!r}")
    header_list = []
    for line in lines[1:]:
        name, sep, value = line.partition(":")
        if sep:
            header_list.append((name.strip().lower(), value.strip()))
    return int(match.group(1)), header_list


def split_rtsp_url(url: str) -> Tuple[str, int, str, Optional[Credentials]]:
    """Split an rtsp:// URL into host, port, request URI and userinfo"""
    parts = urlsplit(url)
    if parts.scheme.lower() != "rtsp" or not parts.hostname:
        raise ProbeError(f"Not an RTSP URL: {url}")
    try:
        port = parts.port or DEFAULT_RTSP_PORT
    except ValueError as e:
        raise ProbeError(f"Invalid port in {url}: {e}") from e

    host = parts.hostname
    netloc_host = f"[{host}]" if ":" in host else host
    uri = f"rtsp://{netloc_host}:{port}{parts.path or '/'}"
    if parts.query:
        uri += f"?{parts.query}"

    credentials = None
    if parts.username is not None:
        credentials = Credentials(unquote(parts.username), unquote(parts.password or ""))
    return host, port, uri, credentials


def _remaining(deadline: float) -> float:
    remaining = deadline - time.monotonic()
    if remaining <= 0:
        raise ProbeError("Request timed out")
    return remaining
