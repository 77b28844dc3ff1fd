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
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Dict, List, Tuple

from tqdm import tqdm

from raidkit.models import Device

DeviceKey = Tuple[str, int]

# Upper bound on concurrent worker threads per phase
MAX_WORKERS = 256


def parallel_map(worker: Callable[[Device], Device], devices: List[Device],
                 desc: str = "Attacking", progress: bool = True) -> Dict[DeviceKey, Device]:
    """Run worker once per device on a bounded thread pool and wait for all of them.

    Each worker gets a private copy of its device. Results are keyed by
    (address, port); a worker that blows up leaves its device unchanged.
    """
    results: Dict[DeviceKey, Device] = {}
    if not devices:
        return results

    with ThreadPoolExecutor(max_workers=min(len(devices), MAX_WORKERS)) as executor:
        future_to_device = {
            executor.submit(worker, copy.deepcopy(device)): device
            for device in devices
        }
        for future in tqdm(as_completed(future_to_device), total=len(future_to_device),
                           desc=desc, unit="device", leave=False, disable=not progress):
            device = future_to_device[future]
            try:
                results[device.key] = future.result()
            except Exception as e:
                logging.error(f"{desc} failed for {device.address}:{device.port}: {e}")
                results[device.key] = device

    return results


def merge_devices(devices: List[Device], results: Dict[DeviceKey, Device]) -> List[Device]:
    """Put results back in the order of the original list"""
    return [results.get(device.key, device) for device in devices]
