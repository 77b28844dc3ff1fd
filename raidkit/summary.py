# =============================================================================
# Author      : awiones
# Created     : 2025-02-18
# License     : GNU General Public License v3.0
# Description : This code was developed by awiones. It is a camera auditing
#               tool designed to discover RTSP devices on a network, guess
#               their media routes and credentials, and report which streams
#               are actually accessible.
# =============================================================================


import json
import logging
import pathlib
from typing import Dict, List

from colorama import Fore, Style

from raidkit.models import AuthType, Device


def devices_to_json(devices: List[Device]) -> List[Dict]:
    return [device.to_dict() for device in devices]


def save_results(devices: List[Device], output_file: str) -> pathlib.Path:
    """Write the attack results as JSON"""
    output_path = pathlib.Path(output_file)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(devices_to_json(devices), f, indent=4)
    logging.info(f"Results saved to {output_path}")
    return output_path


def _auth_line(auth_type: AuthType) -> str:
    if auth_type == AuthType.NONE:
        return "  • This camera does not require authentication"
    if auth_type == AuthType.UNKNOWN:
        return "  • Auth type: unknown"
    return f"  • Auth type: {auth_type.label}"


def format_devices(devices: List[Device]) -> str:
    """Human readable report of the attack results"""
    if not devices:
        return (f"\n{Fore.RED}[!] No devices were found. Please make sure that your target "
                f"is on an accessible network.{Style.RESET_ALL}")

    output = []
    output.append(f"\n{Fore.CYAN}[*] RTSP Attack Results:{Style.RESET_ALL}")
    output.append(f"{Fore.BLUE}{'═' * 60}{Style.RESET_ALL}")

    accessed = 0
    for device in devices:
        output.append(f"\n{Fore.GREEN}▶ Device {device.address}:{device.port}{Style.RESET_ALL}")
        if device.device_label:
            output.append(f"  • Device model: {device.device_label}")
        output.append(f"  • IP address: {device.address}")
        output.append(f"  • RTSP port: {device.port}")
        output.append(_auth_line(device.auth_type))

        if not device.routes:
            output.append(f"  • RTSP route: {Fore.RED}not found{Style.RESET_ALL}")
            continue

        for route in device.routes:
            output.append(f"\n  {Fore.CYAN}RTSP route:{Style.RESET_ALL} {Fore.GREEN}/{route.path}{Style.RESET_ALL}")
            if route.credentials_found and device.credentials:
                output.append(f"    • Username: {Fore.GREEN}{device.credentials.username}{Style.RESET_ALL}")
                output.append(f"    • Password: {Fore.GREEN}{device.credentials.password}{Style.RESET_ALL}")
            else:
                output.append(f"    • Credentials: {Fore.RED}not found{Style.RESET_ALL}")

            if route.available:
                accessed += 1
                output.append(f"    • RTSP URL: {Fore.GREEN}{device.rtsp_url(route.path)}{Style.RESET_ALL}")
                output.append(f"    • Available: {Fore.GREEN}✓{Style.RESET_ALL}")
            else:
                output.append(f"    • Available: {Fore.RED}✗{Style.RESET_ALL}")

            if route.image_url:
                output.append(f"    • Screenshot: {route.image_url}")

    output.append(f"\n{Fore.BLUE}{'─' * 60}{Style.RESET_ALL}")
    if accessed > 1:
        output.append(f"{Fore.GREEN}[✓] Successful attack: {accessed} streams were accessed{Style.RESET_ALL}")
    elif accessed == 1:
        output.append(f"{Fore.GREEN}[✓] Successful attack: one stream was accessed{Style.RESET_ALL}")
    elif not any(device.routes for device in devices):
        output.append(f"{Fore.RED}[!] No RTSP routes were found on any device{Style.RESET_ALL}")
    else:
        output.append(f"{Fore.YELLOW}[!] Streams were found but none were accessed. They are most likely "
                      f"configured with secure credentials and routes. You can try adding entries to the "
                      f"dictionaries in order to attempt a bruteforce attack on the cameras.{Style.RESET_ALL}")

    return "\n".join(output)
