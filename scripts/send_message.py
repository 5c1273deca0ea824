#!/usr/bin/env python3
"""
Send a WhatsApp message from the command line.

Uses the WA_* credentials from the environment (or .env).
Handy for checking a token or trying out a template before wiring it in.

Usage:
    python scripts/send_message.py text 15551234567 "hello"
    python scripts/send_message.py template 15551234567 hello_world --language en_US
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from config import WhatsAppCredentials
from transport.whatsapp.sender import WhatsAppClient, WhatsAppClientError


async def send(args: argparse.Namespace) -> dict:
    client = WhatsAppClient(WhatsAppCredentials.from_env())

    if args.kind == "text":
        return await client.send_text_message(args.to, args.body)

    components = json.loads(args.components) if args.components else []
    return await client.send_template_message(args.to, args.name, args.language, components)


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Send a WhatsApp message")
    subparsers = parser.add_subparsers(dest="kind", required=True)

    text_parser = subparsers.add_parser("text", help="Send a free-form text message")
    text_parser.add_argument("to", help="Recipient phone number")
    text_parser.add_argument("body", help="Message text")

    template_parser = subparsers.add_parser("template", help="Send a template message")
    template_parser.add_argument("to", help="Recipient phone number")
    template_parser.add_argument("name", help="Approved template name")
    template_parser.add_argument("--language", default="en_US", help="Template language code")
    template_parser.add_argument(
        "--components",
        default=None,
        help="Template components as a JSON array",
    )

    args = parser.parse_args()

    missing = WhatsAppCredentials.from_env().missing()
    if "WA_PHONE_NUMBER_ID" in missing or "WA_SYSTEM_ACCESS_TOKEN" in missing:
        print("✗ WA_PHONE_NUMBER_ID and WA_SYSTEM_ACCESS_TOKEN must be set")
        sys.exit(2)

    try:
        result = asyncio.run(send(args))
    except WhatsAppClientError as e:
        print(f"✗ {e}")
        sys.exit(1)
    except json.JSONDecodeError as e:
        print(f"✗ --components is not valid JSON: {e}")
        sys.exit(2)

    print(json.dumps(result, indent=2))


if __name__ == "__main__":
    main()
