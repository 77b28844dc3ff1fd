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
from typing import List, Optional

from raidkit.models import CredentialDictionary


class DictionaryError(Exception):
    pass


# Routes sorted by how often they show up on real cameras
DEFAULT_ROUTES = [
    "",
    "live.sdp",
    "live",
    "stream",
    "media.amp",
    "axis-media/media.amp",
    "mpeg4/media.amp",
    "h264",
    "11",
    "12",
    "1",
    "video1",
    "videoMain",
    "onvif1",
    "live/ch0",
    "live/ch1",
    "live/main",
    "live/sub",
    "live/ch00_0",
    "live/ch00_1",
    "media/video1",
    "media/video2",
    "img/media.sav",
    "cam/realmonitor",
    "cam/realmonitor?channel=1&subtype=0",
    "cam/realmonitor?channel=1&subtype=1",
    "h264/ch1/main/av_stream",
    "h264/ch1/sub/av_stream",
    "Streaming/Channels/1",
    "Streaming/Channels/2",
    "Streaming/Channels/101",
    "Streaming/Channels/102",
    "ISAPI/streaming/channels/101",
    "profile1/media.smp",
    "profile2/media.smp",
    "MediaInput/h264",
    "MediaInput/mpeg4",
    "nphMpeg4/g726-640x480",
    "onvif/profile1/media.smp",
    "ch01.264",
    "ch0_0.h264",
    "user.pin.mp2",
    "video.3gp",
    "video.mp4",
    "videostream.cgi",
]

# Channel patterns of multi-camera recorders
DEFAULT_ROUTES.extend([
    *[f"Streaming/Channels/{i}01" for i in range(2, 9)],
    *[f"cam/realmonitor?channel={i}&subtype=0" for i in range(2, 9)],
    *[f"h264/ch{i}/main/av_stream" for i in range(2, 9)],
])

DEFAULT_USERNAMES = [
    "",
    "admin",
    "Admin",
    "administrator",
    "root",
    "supervisor",
    "ubnt",
    "service",
    "user",
    "guest",
    "888888",
    "666666",
]

DEFAULT_PASSWORDS = [
    "",
    "admin",
    "12345",
    "123456",
    "1234",
    "12345678",
    "123456789",
    "password",
    "pass",
    "root",
    "toor",
    "ubnt",
    "service",
    "system",
    "9999",
    "4321",
    "1111",
    "888888",
    "666666",
    "meinsm",
    "jvc",
    "camera",
    "admin123",
    "admin1234",
]


def default_credentials() -> CredentialDictionary:
    return CredentialDictionary(list(DEFAULT_USERNAMES), list(DEFAULT_PASSWORDS))


def _read_lines(path: str) -> List[str]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return [line.rstrip("\r\n") for line in f]
    except OSError as e:
        raise DictionaryError(f"Unable to open dictionary {path}: {e}") from e


def load_routes(path: Optional[str] = None) -> List[str]:
    """Load a route dictionary, one route per line"""
    if not path:
        return list(DEFAULT_ROUTES)

    logging.debug(f"Loading routes dictionary from path {path!r}")
    routes = []
    for line in _read_lines(path):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        routes.append(line.lstrip("/"))

    if not routes:
        raise DictionaryError(f"Routes dictionary {path} is empty")
    logging.debug(f"Loaded {len(routes)} routes")
    return routes


def load_credentials(path: Optional[str] = None) -> CredentialDictionary:
    """Load a credential dictionary.

    Accepts a JSON document with "usernames" and "passwords" lists, or a
    text file with one username:password pair per line.
    """
    if not path:
        return default_credentials()

    logging.debug(f"Loading credentials dictionary from path {path!r}")
    if path.endswith(".json"):
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except OSError as e:
            raise DictionaryError(f"Unable to open dictionary {path}: {e}") from e
        except json.JSONDecodeError as e:
            raise DictionaryError(f"Invalid credentials dictionary {path}: {e}") from e

        if not isinstance(data, dict):
            raise DictionaryError(f"Credentials dictionary {path} must be a JSON object")
        usernames = data.get("usernames") or []
        passwords = data.get("passwords") or []
        if not isinstance(usernames, list) or not isinstance(passwords, list):
            raise DictionaryError(f"Credentials dictionary {path} needs usernames and passwords lists")
        if not all(isinstance(v, str) for v in usernames + passwords):
            raise DictionaryError(f"Credentials dictionary {path} must only contain strings")
    else:
        usernames, passwords = [], []
        for number, line in enumerate(_read_lines(path), 1):
            if not line.strip() or line.startswith("#"):
                continue
            if ":" not in line:
                raise DictionaryError(f"{path}:{number}: expected username:password")
            username, password = line.split(":", 1)
            if username not in usernames:
                usernames.append(username)
            if password not in passwords:
                passwords.append(password)

    if not usernames or not passwords:
        raise DictionaryError(f"Credentials dictionary {path} needs at least one username and one password")
    logging.debug(f"Loaded {len(usernames)} usernames and {len(passwords)} passwords")
    return CredentialDictionary(usernames, passwords)


def load_targets(targets: List[str]) -> List[str]:
    """Expand a single target naming a file into the targets it lists"""
    if len(targets) != 1:
        return list(targets)

    path = pathlib.Path(targets[0])
    if not path.is_file():
        return list(targets)

    entries = [line.strip() for line in _read_lines(str(path))]
    entries = [entry for entry in entries if entry and not entry.startswith("#")]
    logging.debug(f"Successfully parsed targets file with {len(entries)} entries")
    return entries
