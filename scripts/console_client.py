#!/usr/bin/env python3
"""
Remote Twin Console client
Sends one command to a running monitor and prints the reply

Examples:
  python3 scripts/console_client.py get_twins
  python3 scripts/console_client.py get_twin --id 1 --limit 5
  python3 scripts/console_client.py add_twin --name Lathe-3
"""
import argparse
import asyncio
import json
import sys

import websockets


async def send_command(uri: str, command: str, data: dict) -> dict:
    """Connect, send one command and return the decoded reply"""
    async with websockets.connect(uri) as websocket:
        await websocket.recv()  # welcome message
        await websocket.send(json.dumps({
            "type": "command",
            "command": command,
            "data": data
        }))
        return json.loads(await websocket.recv())


def main():
    parser = argparse.ArgumentParser(description='Remote Twin Console client')
    parser.add_argument('command', choices=['get_status', 'get_twins', 'get_twin', 'add_twin'])
    parser.add_argument('--uri', default='ws://localhost:8765')
    parser.add_argument('--id', help='Twin id for get_twin')
    parser.add_argument('--limit', type=int, help='History points for get_twin')
    parser.add_argument('--name', help='Twin name for add_twin')
    args = parser.parse_args()

    data = {key: value for key, value in
            (("id", args.id), ("limit", args.limit), ("name", args.name)) if value is not None}

    try:
        reply = asyncio.run(send_command(args.uri, args.command, data))
    except (OSError, websockets.exceptions.WebSocketException) as e:
        print(f"ERROR: could not reach console at {args.uri}: {e}", file=sys.stderr)
        print("Make sure the monitor is running with the remote console enabled.", file=sys.stderr)
        sys.exit(1)

    print(json.dumps(reply, indent=2))
    if reply.get("type") == "error":
        sys.exit(1)


if __name__ == "__main__":
    main()
