#!/usr/bin/env python3
"""
Chat Client Application

Console client for a chat room: optionally logs in and prints recent
history, then opens the realtime session, prints incoming messages and
sends each line typed on stdin. Type /quit or send EOF to leave.

Usage:
    chat-client --room 7 --token abc
    chat-client --room 7 --username ann --password secret --history 20
"""

import argparse
import asyncio
import dataclasses
import logging
import sys
from datetime import datetime
from typing import List, Optional

from .api import ApiClient
from .config import ClientSettings
from .connection import ConnectionConfig, ConnectionManager, DispatchCallbacks
from .exceptions import ApiError, ChatClientError, ConfigurationError
from .schemas import ChatMessage

logger = logging.getLogger(__name__)

QUIT_COMMAND = "/quit"


def format_message(message: ChatMessage) -> str:
    """Render a chat message as one console line."""
    moment = datetime.fromtimestamp(message.timestamp / 1000)
    return f"[{moment:%H:%M:%S}] {message.username}: {message.content}"


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="chat-client", description="Realtime chat room client"
    )
    parser.add_argument("--room", required=True, help="Room ID to join")
    parser.add_argument("--token", help="Auth token for the session")
    parser.add_argument("--username", help="Log in with this username")
    parser.add_argument("--password", help="Password for --username")
    parser.add_argument(
        "--api-base", help="Chat server base URL (overrides CHAT_API_BASE)"
    )
    parser.add_argument(
        "--history",
        type=int,
        default=0,
        metavar="N",
        help="Print the last N messages before joining",
    )
    parser.add_argument(
        "--log-level", help="Log level (overrides CHAT_LOG_LEVEL)"
    )
    args = parser.parse_args(argv)

    if not args.token and not (args.username and args.password):
        parser.error("--token or --username with --password is required")
    return args


async def _open_stdin() -> asyncio.StreamReader:
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader()
    await loop.connect_read_pipe(
        lambda: asyncio.StreamReaderProtocol(reader), sys.stdin
    )
    return reader


async def run_client(
    args: argparse.Namespace, settings: ClientSettings
) -> int:
    """
    Run one chat session until the user quits or the session fails.

    Returns:
        Process exit code
    """
    api = ApiClient(settings.api_base, timeout=settings.http_timeout)
    try:
        token = args.token
        if not token:
            auth = await api.login(args.username, args.password)
            token = auth.token
            print(f"Logged in as {auth.user.username}")

        if args.history > 0:
            history = await api.fetch_message_history(
                args.room, token, limit=args.history
            )
            for record in history:
                print(format_message(record.to_chat_message()))
    except ApiError as e:
        print(f"Error: {e}", file=sys.stderr)
        await api.aclose()
        return 1

    failed = asyncio.Event()

    def on_error(error: ChatClientError) -> None:
        print(f"Error: {error}", file=sys.stderr)
        failed.set()

    callbacks = DispatchCallbacks(
        on_message=lambda message: print(format_message(message)),
        on_connect=lambda: print(f"[connected to room {args.room}]"),
        on_disconnect=lambda: print("[disconnected]"),
        on_error=on_error,
    )
    manager = ConnectionManager(
        ConnectionConfig(args.room, token, callbacks), settings
    )

    try:
        manager.open()
        reader = await _open_stdin()
        failed_wait = asyncio.ensure_future(failed.wait())
        try:
            while True:
                line_task = asyncio.ensure_future(reader.readline())
                done, _ = await asyncio.wait(
                    {line_task, failed_wait},
                    return_when=asyncio.FIRST_COMPLETED,
                )
                if failed_wait in done:
                    line_task.cancel()
                    break

                line = line_task.result()
                if not line:
                    break
                text = line.decode(errors="replace").rstrip("\r\n")
                if text == QUIT_COMMAND:
                    break
                if not text.strip():
                    continue
                if not await manager.send(text):
                    print("[not connected, message not sent]")
        finally:
            failed_wait.cancel()
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
    finally:
        await manager.disconnect()
        await api.aclose()

    return 1 if manager.error else 0


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the chat client."""
    args = parse_args(argv)
    try:
        settings = ClientSettings.from_env()
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.api_base:
        settings = dataclasses.replace(settings, api_base=args.api_base)

    logging.basicConfig(
        level=(args.log_level or settings.log_level).upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.info("Starting chat client for room %s", args.room)

    try:
        sys.exit(asyncio.run(run_client(args, settings)))
    except KeyboardInterrupt:
        print("\nExiting...")
        sys.exit(0)


if __name__ == "__main__":
    main()
