#!/usr/bin/env python3
"""
============================================================
API smoke check
============================================================
Calls every endpoint of a running bridge and checks the
response format.

Usage:
    python3 scripts/check_api.py [base_url]

Requires:
    the service is running: python3 main.py
============================================================
"""

import struct
import sys
from datetime import datetime
from typing import Any, Dict, Tuple

import httpx

BASE_URL = "http://localhost:8083"

GREEN = "\033[92m"
RED = "\033[91m"
YELLOW = "\033[93m"
BLUE = "\033[94m"
RESET = "\033[0m"


def print_header(title: str):
    print(f"\n{'='*60}")
    print(f"{BLUE}{title}{RESET}")
    print('='*60)


def print_result(name: str, success: bool, detail: str = ""):
    status = f"{GREEN}PASS{RESET}" if success else f"{RED}FAIL{RESET}"
    print(f"{status} {name}")
    if detail:
        print(f"       {YELLOW}{detail}{RESET}")


def check_json(client: httpx.Client, path: str) -> Tuple[bool, Dict[str, Any]]:
    """GET path and check the ApiResponse envelope

    Returns:
        (passed, response data)
    """
    try:
        data = client.get(path).json()
    except httpx.HTTPError as e:
        return False, {"error": str(e)}

    if "success" not in data:
        return False, {"error": "response has no 'success' field"}
    return bool(data["success"]), data


def main():
    base_url = sys.argv[1] if len(sys.argv) > 1 else BASE_URL
    print_header(f"EPICS bridge API check - {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")

    failures = 0
    with httpx.Client(base_url=base_url, timeout=10) as client:
        for path in ("/api/health", "/api/health/polling", "/api/channels",
                     "/api/channels/measured"):
            ok, data = check_json(client, path)
            print_result(path, ok, "" if ok else str(data.get("error")))
            failures += not ok

        print_header("Binary record")
        try:
            resp = client.get("/api/record")
            ok = resp.status_code == 200 and len(resp.content) % 4 == 0
            values = struct.unpack(f"<{len(resp.content) // 4}f", resp.content) if ok else ()
            print_result("/api/record", ok,
                         f"serial {resp.headers.get('X-Serial-Number')}: {list(values)}"
                         if ok else f"HTTP {resp.status_code}")
        except httpx.HTTPError as e:
            ok = False
            print_result("/api/record", False, str(e))
        failures += not ok

        print_header("Alarms")
        try:
            alarms = client.get("/api/alarms", params={"limit": 10}).json()
            ok = isinstance(alarms, list)
            print_result("/api/alarms", ok, f"{len(alarms)} recent" if ok else str(alarms))
        except httpx.HTTPError as e:
            ok = False
            print_result("/api/alarms", False, str(e))
        failures += not ok

    print(f"\n{'='*60}")
    print(f"{RED if failures else GREEN}{failures} failed{RESET}")
    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
