# =============================================================================
# Author      : awiones
# Created     : 2025-02-18
# License     : GNU General Public License v3.0
# Description : This code was developed by awiones. It is a camera auditing
#               tool designed to discover RTSP devices on a network, guess
#               their media routes and credentials, and report which streams
#               are actually accessible.
# =============================================================================


import argparse
import dataclasses
import logging
import os
import pathlib
import sys
from datetime import datetime
from typing import List

from colorama import Fore, Style, init

from raidkit.attack import Attacker
from raidkit.config import (
    DEFAULT_PORTS,
    DEFAULT_SCAN_SPEED,
    ConfigError,
    ScanConfig,
)
from raidkit.dictionaries import DictionaryError, load_credentials, load_routes, load_targets
from raidkit.discovery import (
    DiscoveryError,
    NmapNotFoundError,
    discover_devices,
    local_networks,
    validate_target,
)
from raidkit.hints import print_hint
from raidkit.models import Device
from raidkit.screenshot import ScreenshotTaker
from raidkit.summary import format_devices, save_results

# Initialize colorama
init(autoreset=True)

RESULTS_DIR = pathlib.Path("results")
ENV_PREFIX = "CAMRAID_"


def env_default(option: str, default=None):
    """Value of CAMRAID_<OPTION> if set, else default"""
    return os.environ.get(ENV_PREFIX + option.upper().replace('-', '_'), default)


def env_flag(option: str) -> bool:
    return str(env_default(option, '')).strip().lower() in ('1', 'true', 'yes', 'on')


def env_configured() -> bool:
    return any(name.startswith(ENV_PREFIX) for name in os.environ)


def setup_logging(debug: bool = False, verbose: bool = False) -> pathlib.Path:
    """Log to a timestamped file in the results directory, and to stderr when debugging"""
    RESULTS_DIR.mkdir(exist_ok=True)
    log_file = RESULTS_DIR / f'camraid_{datetime.now().strftime("%Y%m%d_%H%M%S")}.log'

    handlers = [logging.FileHandler(log_file)]
    if debug or verbose:
        handlers.append(logging.StreamHandler(sys.stderr))

    logging.basicConfig(
        level=logging.DEBUG if (debug or verbose) else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=handlers,
        force=True
    )
    return log_file


def print_header():
    print(f"{Fore.CYAN}")
    print("   ▄████▄   ▄▄▄       ███▄ ▄███▓ ██▀███   ▄▄▄       ██▓ ▓█████▄ ")
    print("  ▒██▀ ▀█  ▒████▄    ▓██▒▀█▀ ██▒▓██ ▒ ██▒▒████▄    ▓██▒ ▒██▀ ██▌")
    print("  ▒▓█    ▄ ▒██  ▀█▄  ▓██    ▓██░▓██ ░▄█ ▒▒██  ▀█▄  ▒██▒ ░██   █▌")
    print("  ▒▓▓▄ ▄██▒░██▄▄▄▄██ ▒██    ▒██ ▒██▀▀█▄  ░██▄▄▄▄██ ░██░ ░▓█▄   ▌")
    print("  ▒ ▓███▀ ░ ▓█   ▓██▒▒██▒   ░██▒░██▓ ▒██▒ ▓█   ▓██▒░██░ ░▒████▓ ")
    print(f"   RTSP camera route & credential auditor{Style.RESET_ALL}")
    logging.info("Starting new scan session")


def parse_arguments(argv=None):
    """Parse command line arguments with help display"""
    parser = argparse.ArgumentParser(
        description=f'''{Fore.CYAN}
CamRaid - discover RTSP cameras and audit their routes and credentials{Style.RESET_ALL}''',
        epilog='''Examples of usage:
  Scanning your home network for RTSP streams:  python CamRaid.py -t 192.168.0.0/24
  Scanning a remote camera on a specific port:  python CamRaid.py -t 172.178.10.14 -p 18554 -s 2
  Scanning an unstable remote network:          python CamRaid.py -t 172.178.10.14/24 -s 1 -T 10000
  Stealthily scanning a remote network:         python CamRaid.py -t 172.178.10.14/24 -s 1 -I 5000

Every option can also be set through a CAMRAID_<OPTION> environment variable,
for example CAMRAID_TARGETS=192.168.1.0/24 or CAMRAID_SCAN_SPEED=2.''',
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument(
        '--targets', '-t',
        action='append',
        help='Targets to scan for open RTSP streams: IPs, hostnames, subnets, nmap ranges or a file (repeatable, comma-separated; default: local 192.168.x networks)'
    )
    parser.add_argument(
        '--ports', '-p',
        action='append',
        help=f'Ports on which to search for RTSP streams (default: {",".join(DEFAULT_PORTS)})'
    )
    parser.add_argument(
        '--custom-routes', '-r',
        default=env_default('custom-routes'),
        help='Path of a custom routes dictionary'
    )
    parser.add_argument(
        '--custom-credentials', '-c',
        default=env_default('custom-credentials'),
        help='Path of a custom credentials dictionary (JSON or username:password lines)'
    )
    parser.add_argument(
        '--scan-speed', '-s',
        type=int,
        choices=range(0, 6),
        default=env_default('scan-speed', DEFAULT_SCAN_SPEED),
        metavar='{0-5}',
        help='The nmap speed preset to use for scanning (lower is stealthier)'
    )
    parser.add_argument(
        '--attack-interval', '-I',
        type=int,
        default=env_default('attack-interval', 0),
        help='Interval between each attack attempt in milliseconds (higher is stealthier)'
    )
    parser.add_argument(
        '--timeout', '-T',
        type=int,
        default=env_default('timeout', 2000),
        help='Timeout of each attack attempt in milliseconds (default: 2000)'
    )
    parser.add_argument(
        '--username', '-u',
        default=env_default('username'),
        help='Only try this username (skips the credentials dictionary)'
    )
    parser.add_argument(
        '--password', '-P',
        default=env_default('password'),
        help='Only try this password (skips the credentials dictionary)'
    )
    parser.add_argument(
        '--debug', '-d',
        action='store_true',
        default=env_flag('debug'),
        help='Enable the debug logs'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        default=env_flag('verbose'),
        help='Enable the verbose logs, tracing every RTSP request'
    )
    parser.add_argument(
        '--output', '-o',
        default=env_default('output'),
        help='Save results to a JSON file'
    )
    parser.add_argument(
        '--screenshots',
        default=env_default('screenshots'),
        metavar='DIR',
        help='Capture a frame of every accessible stream into DIR (requires ffmpeg)'
    )

    argv = sys.argv[1:] if argv is None else argv
    if not argv and not env_configured():
        parser.print_help()
        sys.exit(1)

    args = parser.parse_args(argv)
    # append actions cannot take a string default
    for option in ('targets', 'ports'):
        if getattr(args, option) is None and env_default(option):
            setattr(args, option, [env_default(option)])
    return args


def run_scan(config: ScanConfig) -> List[Device]:
    """Discover devices, attack them and grab screenshots if asked"""
    routes = load_routes(config.routes_dictionary_path)
    credentials = load_credentials(config.credentials_dictionary_path)
    targets = load_targets(list(config.targets))

    devices = discover_devices(targets, config.ports, config.scan_speed)
    if not devices:
        return []
    print(f"{Fore.GREEN}[+] Found {len(devices)} RTSP devices{Style.RESET_ALL}")

    attacker = Attacker(config, routes, credentials)
    devices = attacker.attack(devices)

    if config.screenshot_dir:
        devices = ScreenshotTaker(config.screenshot_dir).capture(devices)

    return devices


def main(argv=None):
    try:
        args = parse_arguments(argv)
        config = ScanConfig.from_args(args)
        setup_logging(config.debug, config.verbose)
        print_header()

        if not config.targets:
            networks = local_networks()
            if not networks:
                print_hint('no_target')
                sys.exit(1)
            print(f"{Fore.BLUE}[*] No target given, scanning local networks: {', '.join(networks)}{Style.RESET_ALL}")
            config = dataclasses.replace(config, targets=tuple(networks))

        invalid = [t for t in load_targets(list(config.targets)) if not validate_target(t)]
        if invalid:
            print_hint('invalid_target', f"Invalid targets: {', '.join(invalid)}")
            sys.exit(1)

        if config.verbose:
            print(f"{Fore.BLUE}[*] Verbose mode enabled{Style.RESET_ALL}")
        if config.credential_override():
            print(f"{Fore.BLUE}[*] Using fixed credentials instead of the dictionary{Style.RESET_ALL}")

        devices = run_scan(config)
        print(format_devices(devices))

        if config.output:
            output_path = save_results(devices, config.output)
            print(f"{Fore.GREEN}\nResults saved to: {output_path}{Style.RESET_ALL}")

    except ConfigError as e:
        print_hint('invalid_option', str(e))
        sys.exit(1)
    except DictionaryError as e:
        logging.error(f"Dictionary error: {e}")
        print_hint('dictionary', str(e))
        sys.exit(1)
    except NmapNotFoundError as e:
        logging.error(f"Discovery failed: {e}")
        print_hint('nmap_missing', str(e))
        sys.exit(1)
    except DiscoveryError as e:
        logging.error(f"Discovery failed: {e}")
        print_hint('discovery', str(e))
        sys.exit(1)
    except KeyboardInterrupt:
        print(f"\n{Fore.YELLOW}[!] Scan interrupted by user{Style.RESET_ALL}")
        print_hint('scan_interrupted')
        sys.exit(1)
    except Exception as e:
        logging.error(f"Scan failed: {e}")
        print(f"\n{Fore.RED}[!] Scan failed: {str(e)}{Style.RESET_ALL}")
        print_hint('general')
        sys.exit(1)


if __name__ == "__main__":
    main()
