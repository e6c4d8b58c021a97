from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional, Sequence

from apns.config import APNS_CONFIG, load_config
from apns.features import create_feedback_poller, create_push_client
from apns.protocol.errors import ApnsError
from apns.protocol.messages import NotificationPayload

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="apns-client", description="APNs binary interface client")
    parser.add_argument("--env", default=".env", help="dotenv file with APNS_* settings")
    sub = parser.add_subparsers(dest="command", required=True)

    send = sub.add_parser("send", help="send one notification")
    send.add_argument("--token", required=True, help="device token (hex)")
    send.add_argument("--alert")
    send.add_argument("--badge", type=int)
    send.add_argument("--sound")
    send.add_argument("--expiration", type=int, help="seconds until the gateway drops the notification")

    feedback = sub.add_parser("feedback", help="print unreachable device tokens")
    feedback.add_argument("--limit", type=int, default=0, help="stop after N records (0 = run until stopped)")
    return parser


async def send_notification(args: argparse.Namespace) -> int:
    payload = NotificationPayload(alert=args.alert, badge=args.badge, sound=args.sound)
    async with create_push_client() as client:
        try:
            receipt = await client.send_payload(args.token, payload, expiration=args.expiration)
        except ApnsError as exc:
            print(json.dumps(exc.to_payload()))
            return 1
    print(receipt.model_dump_json())
    return 0


async def poll_feedback(args: argparse.Namespace) -> int:
    poller = create_feedback_poller()
    count = 0
    try:
        async for record in poller:
            print(record.timestamp, record.device_token)
            count += 1
            if args.limit and count >= args.limit:
                break
    except ApnsError as exc:
        print(json.dumps(exc.to_payload()), file=sys.stderr)
        return 1
    finally:
        await poller.stop()
    logger.info("Received %s feedback records", count)
    return 0


async def run_client(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    load_config(args.env)
    logging.basicConfig(level=APNS_CONFIG["log_level"])
    try:
        match args.command:
            case "send":
                return await send_notification(args)
            case "feedback":
                return await poll_feedback(args)
    except ApnsError as exc:
        logger.error("%s", exc)
        return 1
    return 2


def main() -> None:
    sys.exit(asyncio.run(run_client()))


if __name__ == "__main__":
    main()
