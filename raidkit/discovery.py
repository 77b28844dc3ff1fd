# =============================================================================
# Author      : awiones
# Created     : 2025-02-18
# License     : GNU General Public License v3.0
# Description : This code was developed by awiones. It is a camera auditing
#               tool designed to discover RTSP devices on a network, guess
#               their media routes and credentials, and report which streams
#               are actually accessible.
# =============================================================================


import ipaddress
import logging
import re
import socket
from typing import List, Sequence

import nmap
import psutil
import validators
from colorama import Fore, Style

from raidkit.models import Device

# nmap octet ranges such as 172.16.100.10-20 or 10.0.0-3.1
NMAP_RANGE = re.compile(r"^(\d{1,3}(-\d{1,3})?\.){3}\d{1,3}(-\d{1,3})?$")


class DiscoveryError(Exception):
    pass


class NmapNotFoundError(DiscoveryError):
    pass


def validate_target(target: str) -> bool:
    """Accept IPs, hostnames, CIDR subnets and nmap octet ranges"""
    if not target:
        return False
    if target == "localhost" or validators.domain(target) is True:
        return True
    try:
        if "/" in target:
            ipaddress.ip_network(target, strict=False)
        else:
            ipaddress.ip_address(target)
        return True
    except ValueError:
        pass
    return bool(NMAP_RANGE.match(target))


def local_networks() -> List[str]:
    """Private 192.168.x networks of the local interfaces, used when no target is given"""
    networks = []
    for interface, addresses in psutil.net_if_addrs().items():
        for address in addresses:
            if address.family != socket.AF_INET or not address.address.startswith("192.168."):
                continue
            netmask = address.netmask or "255.255.255.0"
            network = str(ipaddress.ip_interface(f"{address.address}/{netmask}").network)
            if network not in networks:
                logging.debug(f"Found local network {network} on {interface}")
                networks.append(network)
    return networks


def discover_devices(targets: Sequence[str], ports: Sequence[str], scan_speed: int = 4,
                     scanner=None) -> List[Device]:
    """Scan targets with nmap and return the hosts with an open RTSP service"""
    if not targets:
        raise DiscoveryError("No targets to scan")

    invalid = [target for target in targets if not validate_target(target)]
    if invalid:
        raise DiscoveryError(f"Invalid targets: {', '.join(invalid)}")

    hosts = " ".join(targets)
    port_argument = ",".join(ports)
    print(f"{Fore.BLUE}[*] Scanning {hosts} on ports {port_argument}...{Style.RESET_ALL}")

    if scanner is None:
        try:
            scanner = nmap.PortScanner()
        except nmap.PortScannerError as e:
            raise NmapNotFoundError(f"nmap is not available: {e}") from e

    try:
        scanner.scan(hosts=hosts, ports=port_argument, arguments=f"-sV -T{scan_speed}")
    except nmap.PortScannerError as e:
        raise DiscoveryError(f"Error while scanning network: {e}") from e

    devices = []
    for host in scanner.all_hosts():
        # Keep IPv4 addresses only
        if host.count(":") >= 2:
            continue
        if "tcp" not in scanner[host].all_protocols():
            continue

        for port in sorted(scanner[host]["tcp"]):
            service = scanner[host]["tcp"][port]
            if service.get("state") != "open":
                continue
            if "rtsp" not in service.get("name", ""):
                continue
            devices.append(Device(address=host, port=int(port), device_label=service.get("product", "")))

    logging.debug(f"Found {len(devices)} RTSP devices")
    return devices
