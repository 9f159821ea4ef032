"""Command-line client for the chat server."""

from __future__ import annotations

import argparse
import json

import httpx


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Send a message to the Octave chat server")
    parser.add_argument("message", help="User message")
    parser.add_argument("--chat-url", default="http://localhost:3000", help="Chat server base URL")
    parser.add_argument("--timeout", type=float, default=120.0, help="Request timeout seconds")
    parser.add_argument("--verbose", action="store_true", help="Print sources and tool calls")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    url = f"{args.chat_url}/api/chat"
    payload = {"message": args.message}

    # Avoid inheriting system proxy settings that can break localhost calls.
    try:
        with httpx.Client(timeout=args.timeout, trust_env=False) as client:
            resp = client.post(url, json=payload)
    except httpx.ReadTimeout:
        print("Request timed out. The server may still be processing the request.")
        print("Try again with a longer timeout, e.g. --timeout 240")
        return 1
    if resp.status_code >= 400:
        print(f"Request failed: {resp.status_code}")
        print(resp.text)
        return 1

    data = resp.json()
    print(data.get("content", ""))

    if args.verbose:
        metadata = data.get("metadata") or {}
        print("\n--- id ---")
        print(data.get("id"))
        print(f"\n--- sources ({metadata.get('processingTimeMs')} ms) ---")
        print(", ".join(metadata.get("sources", [])) or "(none)")
        print("\n--- tool_calls ---")
        print(json.dumps(metadata.get("toolCalls", []), ensure_ascii=False, indent=2))

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
