"""
Host inventory collector.

Gathers machine, OS and license facts for the host it runs on and either
prints them as JSON or POSTs them once to the registration webhook:

    python -m cmdb.inventory               # print JSON
    python -m cmdb.inventory --send        # POST to REGISTRATION_WEBHOOK_URL
"""

from __future__ import annotations

import argparse
import json
import logging
import platform
import re
import socket
import subprocess
import sys
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
import psutil

from cmdb import config
from cmdb.logging_config import setup_logging
from cmdb.webhooks import WebhookError, post_json

logger = logging.getLogger(__name__)

GB = 1024 ** 3
SLMGR = r"C:\Windows\System32\slmgr.vbs"


def _gb(n_bytes: float) -> str:
    return f"{n_bytes / GB:.2f}"


def primary_ip() -> Optional[str]:
    # no packet is sent; connecting a UDP socket only selects the outbound interface
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        sock.connect(("8.8.8.8", 80))
        return sock.getsockname()[0]
    except OSError:
        try:
            return socket.gethostbyname(socket.gethostname())
        except OSError:
            return None
    finally:
        sock.close()


def _slmgr(option: str) -> str:
    proc = subprocess.run(
        ["cscript", "//nologo", SLMGR, option],
        capture_output=True,
        text=True,
        timeout=60,
    )
    return proc.stdout


def parse_license_info(dli_output: str, xpr_output: str = "") -> Dict[str, Optional[str]]:
    """Pick license name, status and expiration out of slmgr /dli and /xpr text."""
    name = status = None
    for line in dli_output.splitlines():
        key, _, value = line.partition(":")
        key = key.strip().lower()
        if key == "name" and value.strip():
            name = value.strip()
        elif key == "license status" and value.strip():
            status = value.strip()

    expiration = None
    xpr = " ".join(xpr_output.split())
    if xpr:
        m = re.search(r"expire[sd]?\s+(.+?)\.?$", xpr)
        expiration = m.group(1).strip() if m else xpr
    return {"windows_license": name, "license_status": status, "license_expiration": expiration}


def windows_license_info() -> Dict[str, Optional[str]]:
    if platform.system() != "Windows":
        return {"windows_license": None, "license_status": None, "license_expiration": None}
    try:
        return parse_license_info(_slmgr("/dli"), _slmgr("/xpr"))
    except (OSError, subprocess.SubprocessError) as e:
        logger.warning("Could not read Windows license information: %s", e)
        return {"windows_license": None, "license_status": None, "license_expiration": None}


def collect_inventory(cpu_sample_seconds: float = 1.0) -> Dict[str, Any]:
    system = platform.system()
    memory = psutil.virtual_memory()
    disk = psutil.disk_usage("C:\\" if system == "Windows" else "/")

    facts: Dict[str, Any] = {
        "host_name": socket.gethostname(),
        "os": f"{system} {platform.release()}".strip(),
        "kernel_version": platform.version(),
        "cpu_core": str(psutil.cpu_count(logical=False) or ""),
        "cpu_threads": str(psutil.cpu_count(logical=True) or ""),
        "current_cpu_usage": f"{psutil.cpu_percent(interval=cpu_sample_seconds):.1f}",
        "total_memory_gb": _gb(memory.total),
        "free_memory_gb": _gb(memory.available),
        "used_memory_percentage": f"{memory.percent:.1f}",
        "storage_total": _gb(disk.total),
        "storage_available": _gb(disk.free),
        "ip_address": primary_ip(),
        "item_type": "Workstation" if system == "Windows" else "Server",
        "collected_at": datetime.now(timezone.utc).isoformat(),
    }
    facts.update(windows_license_info())
    return facts


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Collect host inventory for the CMDB.")
    parser.add_argument("--send", action="store_true", help="POST the inventory to the registration webhook")
    parser.add_argument("--webhook", default=None, help="Webhook URL (default: REGISTRATION_WEBHOOK_URL)")
    parser.add_argument("--owner", default=None, help="Owner name to record for this host")
    parser.add_argument("--environment", default=None, help="Environment to record for this host")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    load_dotenv(dotenv_path=".env")
    setup_logging("inventory", level=config.log_level(), stream=sys.stderr)

    facts = collect_inventory()
    if args.owner:
        facts["item_owner"] = args.owner
    if args.environment:
        facts["environment"] = args.environment

    if not args.send:
        print(json.dumps(facts, indent=2))
        return 0

    url = args.webhook or config.registration_webhook_url()
    if not url:
        print("Registration webhook URL is not configured (REGISTRATION_WEBHOOK_URL).", file=sys.stderr)
        return 2

    try:
        post_json(url, facts)
    except WebhookError as e:
        print(f"Failed to send inventory: {e}", file=sys.stderr)
        return 1

    print(f"Inventory for {facts['host_name']} sent to the registration webhook.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
