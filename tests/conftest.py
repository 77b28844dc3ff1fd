import socket
import socketserver
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional

import pytest

from raidkit.config import ScanConfig
from raidkit.models import AuthType, CredentialDictionary, Credentials, Device
from raidkit.rtsp_probe import DEFAULT_TRANSPORT, DESCRIBE, SETUP, ProbeResult


@dataclass
class Call:
    method: str
    url: str
    credentials: Optional[Credentials]
    auth_type: AuthType
    probe_id: int
    thread_id: int


class FakeProbe:
    """Stands in for RTSPProbe, answering from a responder function"""

    def __init__(self, recorder, probe_id):
        self.recorder = recorder
        self.probe_id = probe_id
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.closed = True

    def describe(self, url, credentials=None, auth_type=AuthType.UNKNOWN):
        return self._call(DESCRIBE, url, credentials, auth_type)

    def setup(self, url, credentials=None, auth_type=AuthType.UNKNOWN, transport=DEFAULT_TRANSPORT):
        return self._call(SETUP, url, credentials, auth_type)

    def _call(self, method, url, credentials, auth_type):
        call = Call(method, url, credentials, auth_type, self.probe_id, threading.get_ident())
        with self.recorder.lock:
            self.recorder.calls.append(call)
        outcome = self.recorder.responder(call)
        if isinstance(outcome, Exception):
            raise outcome
        if isinstance(outcome, int):
            return ProbeResult(outcome)
        return outcome


class ProbeRecorder:
    def __init__(self, responder: Callable[[Call], object]):
        self.responder = responder
        self.calls: List[Call] = []
        self.probes: List[FakeProbe] = []
        self.lock = threading.Lock()

    def factory(self) -> FakeProbe:
        with self.lock:
            probe = FakeProbe(self, len(self.probes))
            self.probes.append(probe)
        return probe

    def calls_for(self, method=None, url_suffix=None):
        return [
            call for call in self.calls
            if (method is None or call.method == method)
            and (url_suffix is None or call.url.endswith(url_suffix))
        ]


@pytest.fixture
def make_recorder():
    return ProbeRecorder


@pytest.fixture
def config():
    return ScanConfig(targets=("127.0.0.1",), timeout=0.5)


@pytest.fixture
def credentials():
    return CredentialDictionary(["admin", "root"], ["12345", "root"])


@pytest.fixture
def devices():
    return [
        Device(address="10.0.0.1", port=554, device_label="fakeDevice"),
        Device(address="10.0.0.2", port=8554, device_label="fakeDevice"),
    ]


class _RTSPHandler(socketserver.BaseRequestHandler):
    def handle(self):
        with self.server.lock:
            self.server.connections += 1
        buffer = b""
        while True:
            while b"\r\n\r\n" not in buffer:
                chunk = self.request.recv(4096)
                if not chunk:
                    return
                buffer += chunk
            head, _, buffer = buffer.partition(b"\r\n\r\n")
            request = head.decode()
            with self.server.lock:
                self.server.requests.append(request)
            response = self.server.responder(request)
            if response is None:
                return
            self.request.sendall(response)


class RTSPTestServer(socketserver.ThreadingTCPServer):
    allow_reuse_address = True
    daemon_threads = True

    def __init__(self, host: str = "127.0.0.1"):
        if ":" in host:
            self.address_family = socket.AF_INET6
        self.host = host
        super().__init__((host, 0), _RTSPHandler)
        self.lock = threading.Lock()
        self.requests: List[str] = []
        self.connections = 0
        self.responder = lambda request: rtsp_response(200)

    @property
    def port(self) -> int:
        return self.server_address[1]

    def url(self, path: str = "live.sdp") -> str:
        host = f"[{self.host}]" if ":" in self.host else self.host
        return f"rtsp://{host}:{self.port}/{path}"


def rtsp_response(status: int, reason: str = "OK", headers=None, body: bytes = b"") -> bytes:
    lines = [f"RTSP/1.0 {status} {reason}", "CSeq: 1"]
    for name, value in headers or []:
        lines.append(f"{name}: {value}")
    if body:
        lines.append(f"Content-Length: {len(body)}")
    return ("\r\n".join(lines) + "\r\n\r\n").encode() + body


def request_headers(request: str) -> dict:
    headers = {}
    for line in request.split("\r\n")[1:]:
        name, _, value = line.partition(":")
        headers[name.strip().lower()] = value.strip()
    return headers


def _serve(server):
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield server
    server.shutdown()
    server.server_close()


@pytest.fixture
def rtsp_server():
    yield from _serve(RTSPTestServer())


@pytest.fixture
def rtsp_server_v6():
    if not socket.has_ipv6:
        pytest.skip("IPv6 is not supported on this host")
    try:
        server = RTSPTestServer("::1")
    except OSError as e:
        pytest.skip(f"Cannot listen on ::1: {e}")
    yield from _serve(server)


class FakeHost(dict):
    def all_protocols(self):
        return [proto for proto in ("tcp", "udp") if proto in self]


class FakeScanner:
    """Mimics nmap.PortScanner with canned results"""

    def __init__(self, hosts, error=None):
        self.hosts = {address: FakeHost(protocols) for address, protocols in hosts.items()}
        self.error = error
        self.scans = []

    def scan(self, hosts=None, ports=None, arguments=None):
        self.scans.append({"hosts": hosts, "ports": ports, "arguments": arguments})
        if self.error:
            raise self.error

    def all_hosts(self):
        return sorted(self.hosts)

    def __getitem__(self, host):
        return self.hosts[host]


def service(name="rtsp", state="open", product=""):
    return {"name": name, "state": state, "product": product}
