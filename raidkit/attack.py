# =============================================================================
# Author      : awiones
# Created     : 2025-02-18
# License     : GNU General Public License v3.0
# Description : This code was developed by awiones. It is a camera auditing
#               tool designed to discover RTSP devices on a network, guess
#               their media routes and credentials, and report which streams
#               are actually accessible.
# =============================================================================


import copy
import logging
import time
from typing import Callable, Dict, List, Optional, Tuple

from colorama import Fore, Style

from raidkit.config import ScanConfig
from raidkit.fanout import merge_devices, parallel_map
from raidkit.models import AuthType, CredentialDictionary, Credentials, Device, Route
from raidkit.rtsp_probe import (
    RTSP_FORBIDDEN,
    RTSP_NOT_FOUND,
    RTSP_OK,
    RTSP_UNAUTHORIZED,
    ProbeError,
    RTSPProbe,
    auth_type_from_bitmask,
)

# 401 and 403 mean the route exists even though access is denied
ROUTE_FOUND_CODES = (RTSP_OK, RTSP_UNAUTHORIZED, RTSP_FORBIDDEN)
# 404 means authentication went through but the route is wrong
CREDENTIALS_ACCEPTED_CODES = (RTSP_OK, RTSP_NOT_FOUND)


class AttackError(Exception):
    pass


class Attacker:
    """Drives the route, auth, credential and validation attacks"""

    def __init__(self, config: ScanConfig, routes: List[str], credentials: CredentialDictionary,
                 probe_factory: Optional[Callable[[], RTSPProbe]] = None, progress: bool = True):
        self.config = config
        self.routes = [route.strip().lstrip("/") for route in routes]
        override = config.credential_override()
        if override is not None:
            credentials = CredentialDictionary.single(override.username, override.password)
        self.credentials = credentials
        self.probe_factory = probe_factory or self._default_probe
        self.progress = progress

    def _default_probe(self) -> RTSPProbe:
        return RTSPProbe(timeout=self.config.timeout, verbose=self.config.verbose)

    def attack(self, targets: List[Device]) -> List[Device]:
        """Run every attack phase on the targets and return the enriched devices"""
        if not targets:
            raise AttackError("Unable to attack empty list of targets")

        order = [device.key for device in targets]
        state: Dict[Tuple[str, int], Device] = {
            device.key: copy.deepcopy(device) for device in targets
        }

        def current() -> List[Device]:
            return [state[key] for key in dict.fromkeys(order)]

        self._step(f"Attacking routes of {len(state)} devices")
        state.update((d.key, d) for d in self.attack_routes(current()))

        self._step(f"Attempting to detect authentication methods of {len(state)} devices")
        state.update((d.key, d) for d in self.detect_auth_methods(current()))

        self._step(f"Attacking credentials of {len(state)} devices")
        state.update((d.key, d) for d in self.attack_credentials(current()))

        self._step("Validating that devices are accessible")
        state.update((d.key, d) for d in self.validate_devices(current()))

        # Some servers (GST RTSP Server among them) answer 401 before 404, so a
        # route attack that runs after credentials are known can find more.
        if any(not device.routes for device in state.values()):
            self._step("Second round of attacks")
            for fresh in self.attack_routes(current()):
                state[fresh.key] = merge_routes(state[fresh.key], fresh)

            self._step("Validating that devices are accessible")
            state.update((d.key, d) for d in self.validate_devices(current()))

        return [state[key] for key in order]

    def attack_routes(self, devices: List[Device]) -> List[Device]:
        results = parallel_map(self._attack_device_routes, devices,
                               desc="Route attack", progress=self.progress)
        return merge_devices(devices, results)

    def detect_auth_methods(self, devices: List[Device]) -> List[Device]:
        detected = [copy.deepcopy(device) for device in devices]
        with self.probe_factory() as probe:
            for index, device in enumerate(detected):
                if not device.routes:
                    logging.debug(f"No route known for {device.address}:{device.port}, skipping auth detection")
                    continue
                if index:
                    self._pace()

                auth_type = self._detect_auth_method(probe, device)
                for route in device.routes:
                    route.auth_type = auth_type
                logging.debug(f"Device {device.rtsp_url(device.routes[0].path)} uses {auth_type.label} authentication method")
        return detected

    def attack_credentials(self, devices: List[Device]) -> List[Device]:
        results = parallel_map(self._attack_device_credentials, devices,
                               desc="Credential attack", progress=self.progress)
        return merge_devices(devices, results)

    def validate_devices(self, devices: List[Device]) -> List[Device]:
        results = parallel_map(self._validate_device, devices,
                               desc="Validation", progress=self.progress)
        return merge_devices(devices, results)

    def _attack_device_routes(self, device: Device) -> Device:
        auth_type = device.auth_type
        found = []
        with self.probe_factory() as probe:
            for index, path in enumerate(self.routes):
                if index:
                    self._pace()
                if self._route_exists(probe, device, path):
                    found.append(Route(path, auth_type=auth_type))
        device.routes = found
        logging.debug(f"Found {len(found)} routes on {device.address}:{device.port}")
        return device

    def _attack_device_credentials(self, device: Device) -> Device:
        attempts = 0
        with self.probe_factory() as probe:
            for route in device.routes:
                for credentials in self._candidates(device):
                    if attempts:
                        self._pace()
                    attempts += 1
                    if not self._credentials_work(probe, device, route, credentials):
                        continue

                    # A device carries one pair, so a route that only accepts another one is not credentialed
                    if device.credentials is None:
                        device.credentials = credentials
                    elif device.credentials != credentials:
                        logging.warning(f"Route {route.path} on {device.address}:{device.port} only accepts {credentials}, "
                                        f"device keeps {device.credentials}")
                        break
                    route.credentials_found = True
                    break
        return device

    def _validate_device(self, device: Device) -> Device:
        with self.probe_factory() as probe:
            for index, route in enumerate(device.routes):
                if index:
                    self._pace()
                route.available = self._setup_works(probe, device, route)
        return device

    def _candidates(self, device: Device) -> List[Credentials]:
        """Dictionary pairs in order, with credentials the device already accepted first"""
        candidates = list(self.credentials.pairs())
        if device.credentials is not None:
            candidates = [device.credentials] + [c for c in candidates if c != device.credentials]
        return candidates

    def _route_exists(self, probe: RTSPProbe, device: Device, path: str) -> bool:
        url = device.rtsp_url(path, with_credentials=False)
        try:
            result = probe.describe(url, device.credentials, device.auth_type)
        except ProbeError as e:
            logging.debug(f"Route attack on {url} failed: {e}")
            return False
        return result.status_code in ROUTE_FOUND_CODES

    def _detect_auth_method(self, probe: RTSPProbe, device: Device) -> AuthType:
        url = device.rtsp_url(device.routes[0].path, with_credentials=False)
        try:
            result = probe.describe(url, None, AuthType.UNKNOWN)
        except ProbeError as e:
            logging.debug(f"Auth detection on {url} failed: {e}")
            return AuthType.UNKNOWN
        return auth_type_from_bitmask(result.auth_methods)

    def _credentials_work(self, probe: RTSPProbe, device: Device, route: Route,
                          credentials: Credentials) -> bool:
        url = device.rtsp_url(route.path, with_credentials=False)
        try:
            result = probe.describe(url, credentials, route.auth_type)
        except ProbeError as e:
            logging.debug(f"Credential attack on {url} with {credentials.username} failed: {e}")
            return False
        return result.status_code in CREDENTIALS_ACCEPTED_CODES

    def _setup_works(self, probe: RTSPProbe, device: Device, route: Route) -> bool:
        url = device.rtsp_url(route.path, with_credentials=False)
        try:
            result = probe.setup(url, device.credentials, route.auth_type)
        except ProbeError as e:
            logging.debug(f"Validation of {url} failed: {e}")
            return False
        return result.status_code == RTSP_OK

    def _pace(self) -> None:
        if self.config.attack_interval > 0:
            time.sleep(self.config.attack_interval)

    def _step(self, message: str) -> None:
        logging.info(message)
        if self.progress:
            print(f"{Fore.BLUE}[*] {message}...{Style.RESET_ALL}")


def merge_routes(previous: Device, fresh: Device) -> Device:
    """Keep every route already known and append the newly found ones"""
    merged = copy.deepcopy(previous)
    for route in fresh.routes:
        if merged.route(route.path) is None:
            merged.routes.append(copy.deepcopy(route))
    return merged
