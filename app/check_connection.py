#!/usr/bin/env python3
"""
WebSocket connection check for the Tennis Clicker relay.

Connects, authenticates, requests the live match list and prints it.
Exits 0 when the whole exchange succeeds, 1 otherwise.

Usage:
    python -m app.check_connection [url] [username] [password]
"""
import argparse
import json
import os
import sys
import time
from typing import Any, Callable, Dict, List, Optional

from dotenv import load_dotenv
from websockets.exceptions import WebSocketException
from websockets.sync.client import connect

load_dotenv()

DEFAULT_URL = "ws://localhost:8765"
DEFAULT_TIMEOUT_SECONDS = 30.0
MATCH_PREVIEW_LIMIT = 5


def format_matches(matches: List[Dict[str, Any]], limit: int = MATCH_PREVIEW_LIMIT) -> List[str]:
    """Format the first few matches of a matches_list for printing."""
    if not matches:
        return ["   No live matches at the moment"]

    lines = ["📊 Available matches:"]
    for index, match in enumerate(matches[:limit], start=1):
        lines.append(f"   {index}. {match.get('name')}")
        lines.append(f"      Category: {match.get('category')}")
        lines.append(f"      Status: {match.get('status')}")

    if len(matches) > limit:
        lines.append(f"   ... and {len(matches) - limit} more")
    return lines


def run_check(
    url: str,
    username: str,
    password: str,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    connect_fn: Callable[..., Any] = connect,
) -> int:
    """
    Run the authenticate -> get_matches exchange against a relay.

    Returns:
        Process exit code
    """
    print("📡 Connecting to server...")
    deadline = time.monotonic() + timeout

    try:
        with connect_fn(url, open_timeout=timeout) as ws:
            print("✅ Connected successfully!")
            print("")
            print("🔐 Authenticating...")
            ws.send(json.dumps({"type": "authenticate", "username": username, "password": password}))

            while True:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise TimeoutError()

                try:
                    message = json.loads(ws.recv(timeout=remaining))
                except ValueError as e:
                    print(f"❌ Failed to parse message: {e}")
                    continue

                if not isinstance(message, dict):
                    print(f"❌ Unexpected message: {message!r}")
                    continue

                message_type = message.get("type")
                print(f"📨 Received: {message_type}")

                if message_type == "connection":
                    print(f"   {message.get('message')}")
                elif message_type == "auth_success":
                    print("✅ Authentication successful!")
                    print("")
                    print("📋 Requesting live matches...")
                    ws.send(json.dumps({"type": "get_matches"}))
                elif message_type == "auth_failed":
                    print("❌ Authentication failed!")
                    print(f"   {message.get('message')}")
                    return 1
                elif message_type == "matches_list":
                    print(f"✅ Received {message.get('count', 0)} matches")
                    print("")
                    for line in format_matches(message.get("data") or []):
                        print(line)
                    print("")
                    print("=" * 60)
                    print("✅ All tests passed!")
                    print("=" * 60)
                    return 0
                elif message_type == "error":
                    print(f"❌ Server error: {message.get('message')}")
                else:
                    print(f"   {json.dumps(message, indent=2)}")
    except TimeoutError:
        print("")
        print("❌ Test timeout - no response from server", file=sys.stderr)
        return 1
    except (OSError, WebSocketException) as e:
        print(f"❌ Connection failed: {e}", file=sys.stderr)
        return 1


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Check a Tennis Clicker relay WebSocket connection")
    parser.add_argument("url", nargs="?", default=DEFAULT_URL, help=f"WebSocket URL (default: {DEFAULT_URL})")
    parser.add_argument(
        "username",
        nargs="?",
        default=os.getenv("AUTH_USERNAME", "admin"),
        help="Username (default: AUTH_USERNAME or admin)",
    )
    parser.add_argument(
        "password",
        nargs="?",
        default=os.getenv("AUTH_PASSWORD", "password"),
        help="Password (default: AUTH_PASSWORD or password)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT_SECONDS,
        help=f"Seconds to wait for the exchange (default: {DEFAULT_TIMEOUT_SECONDS:g})",
    )
    args = parser.parse_args(argv)

    print("=" * 60)
    print("🎾 Tennis Clicker WebSocket Connection Test")
    print("=" * 60)
    print(f"URL: {args.url}")
    print(f"Username: {args.username}")
    print("=" * 60)
    print("")

    return run_check(args.url, args.username, args.password, timeout=args.timeout)


if __name__ == "__main__":
    sys.exit(main())
