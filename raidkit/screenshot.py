# =============================================================================
# Author      : awiones
# Created     : 2025-02-18
# License     : GNU General Public License v3.0
# Description : This code was developed by awiones. It is a camera auditing
#               tool designed to discover RTSP devices on a network, guess
#               their media routes and credentials, and report which streams
#               are actually accessible.
# =============================================================================


import logging
import pathlib
import re
import shutil
import subprocess
from typing import List

from colorama import Fore, Style

from raidkit.fanout import merge_devices, parallel_map
from raidkit.models import Device

FFMPEG_TIMEOUT = 20  # seconds


def screenshot_filename(device: Device, path: str) -> str:
    name = f"{device.address}_{device.port}_{path or 'root'}"
    return re.sub(r"[^A-Za-z0-9_-]", "_", name) + ".jpg"


class ScreenshotTaker:
    """Grab one frame of every accessible route with ffmpeg"""

    def __init__(self, output_dir: str, ffmpeg: str = "ffmpeg", progress: bool = True):
        self.output_dir = pathlib.Path(output_dir)
        self.ffmpeg = ffmpeg
        self.progress = progress

    def available(self) -> bool:
        return shutil.which(self.ffmpeg) is not None

    def capture(self, devices: List[Device]) -> List[Device]:
        if not self.available():
            logging.warning(f"{self.ffmpeg} not found, skipping screenshots")
            print(f"{Fore.YELLOW}[!] ffmpeg not found, screenshots skipped{Style.RESET_ALL}")
            return devices

        self.output_dir.mkdir(parents=True, exist_ok=True)
        results = parallel_map(self._capture_device, devices, desc="Screenshots", progress=self.progress)
        return merge_devices(devices, results)

    def _capture_device(self, device: Device) -> Device:
        for route in device.routes:
            if not (route.available or route.credentials_found):
                continue

            target = self.output_dir / screenshot_filename(device, route.path)
            command = [
                self.ffmpeg, "-loglevel", "fatal", "-y",
                "-rtsp_transport", "tcp",
                "-i", device.rtsp_url(route.path),
                "-vframes", "1",
                str(target),
            ]
            try:
                subprocess.run(command, stdout=subprocess.DEVNULL, stderr=subprocess.PIPE,
                               timeout=FFMPEG_TIMEOUT, check=True)
            except subprocess.TimeoutExpired:
                logging.debug(f"Screenshot of {device.address}/{route.path} timed out")
                continue
            except subprocess.CalledProcessError as e:
                logging.debug(f"Screenshot of {device.address}/{route.path} failed: {e.stderr!r}")
                continue

            route.image_url = str(target)
            logging.info(f"Captured screenshot {target}")
        return device
