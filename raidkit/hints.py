# =============================================================================
# Author      : awiones
# Created     : 2025-02-18
# License     : GNU General Public License v3.0
# Description : This code was developed by awiones. It is a camera auditing
#               tool designed to discover RTSP devices on a network, guess
#               their media routes and credentials, and report which streams
#               are actually accessible.
# =============================================================================


from colorama import Fore, Style

def get_hint(error_type: str) -> str:
    """Return formatted usage hint based on error type"""
    hints = {
        'no_target': f"""
{Fore.YELLOW}No target was given and no local 192.168.x network was found. Use:
{Fore.CYAN}python CamRaid.py --targets <IP/HOSTNAME/NETWORK> {Fore.GREEN}[options]
{Fore.YELLOW}Examples:
{Fore.CYAN}python CamRaid.py -t 192.168.1.100
python CamRaid.py -t 192.168.1.0/24
python CamRaid.py -t 172.16.100.10-20 -p 554,8554
python CamRaid.py -t targets.txt{Style.RESET_ALL}
        """,

        'invalid_target': f"""
{Fore.YELLOW}Invalid target. Targets can be an IP, a hostname, a CIDR subnet or an nmap range:
{Fore.CYAN}python CamRaid.py -t 172.16.100.10
python CamRaid.py -t 172.16.100.0/24
python CamRaid.py -t 172.16.100.10-20{Style.RESET_ALL}
        """,

        'invalid_option': f"""
{Fore.YELLOW}Invalid option. Ports must be between 1-65535, timeouts positive and scan speed between 0-5. Use:
{Fore.CYAN}python CamRaid.py -t <IP> -p <PORT>[,<PORT>-<PORT>]
{Fore.YELLOW}Example:
{Fore.CYAN}python CamRaid.py -t 192.168.1.100 -p 554,8554-8560{Style.RESET_ALL}
        """,

        'dictionary': f"""
{Fore.YELLOW}A dictionary could not be loaded. Routes dictionaries hold one route per line,
credentials dictionaries are JSON ({{"usernames": [...], "passwords": [...]}}) or username:password lines:
{Fore.CYAN}python CamRaid.py -t <IP> -r routes.txt -c credentials.json{Style.RESET_ALL}
        """,

        'nmap_missing': f"""
{Fore.YELLOW}Network discovery needs the nmap binary:
{Fore.CYAN}sudo apt-get install nmap{Style.RESET_ALL}
        """,

        'discovery': f"""
{Fore.YELLOW}nmap could not complete the scan. Some scan types need root privileges
and unresolvable hostnames abort the scan:
{Fore.CYAN}sudo python CamRaid.py -t <IP/NETWORK>
{Fore.YELLOW}Slowing the scan down can also help on unstable networks:
{Fore.CYAN}python CamRaid.py -t <IP/NETWORK> -s 2{Style.RESET_ALL}
        """,

        'scan_interrupted': f"""
{Fore.YELLOW}Scan interrupted by user.
{Fore.CYAN}To resume scanning, run the same command again.{Style.RESET_ALL}
        """,

        'general': f"""
{Fore.YELLOW}For complete usage information, use:
{Fore.CYAN}python CamRaid.py --help

{Fore.YELLOW}Common usage patterns:
{Fore.CYAN}1. Home network:         python CamRaid.py -t 192.168.0.0/24
2. Remote camera:        python CamRaid.py -t 172.178.10.14 -p 18554 -s 2
3. Unstable network:     python CamRaid.py -t 172.178.10.14/24 -s 1 -T 10000
4. Stealthy scan:        python CamRaid.py -t 172.178.10.14/24 -s 1 -I 5000
5. Known credentials:    python CamRaid.py -t 172.178.10.14 -u admin -P 12345{Style.RESET_ALL}
        """
    }

    return hints.get(error_type, hints['general'])

def print_hint(error_type: str, additional_info: str = None) -> None:
    """Print a formatted usage hint"""
    print(f"\n{Fore.RED}[!] Usage Error: {Style.RESET_ALL}")
    if additional_info:
        print(f"{Fore.RED}{additional_info}{Style.RESET_ALL}")
    print(get_hint(error_type))
