#!/usr/bin/env python3
"""Generate API keys and RSA signing keys for the token service.

Usage:
    jwt-service-keygen api-key [--length 48]
    jwt-service-keygen private-key [--modulus-length 2048]
"""

import argparse
import base64
import json
import secrets
import sys

from jwt_service.crypto.keys import RSA_KEY_SIZE, generate_rsa_keypair

API_KEY_LENGTH_DEFAULT = 48
API_KEY_LENGTH_MIN = 16
MODULUS_LENGTH_MIN = 2048


def generate_api_key(length: int = API_KEY_LENGTH_DEFAULT) -> str:
    """URL-safe random key of exactly ``length`` characters."""
    if length < API_KEY_LENGTH_MIN:
        raise ValueError(f"API key length must be at least {API_KEY_LENGTH_MIN}")
    raw = secrets.token_bytes(length)
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode()[:length]


def generate_private_key_json(modulus_length: int = RSA_KEY_SIZE) -> str:
    """PEM keypair as the JSON document operators paste into configuration."""
    if modulus_length < MODULUS_LENGTH_MIN:
        raise ValueError(f"modulus length must be at least {MODULUS_LENGTH_MIN}")
    keypair = generate_rsa_keypair(key_size=modulus_length)
    return json.dumps(
        {"privateKey": keypair.private_key_pem, "publicKey": keypair.public_key_pem},
        indent=2,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jwt-service-keygen",
        description=__doc__,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    api_key = sub.add_parser("api-key", help="Print a random API key")
    api_key.add_argument("--length", type=int, default=API_KEY_LENGTH_DEFAULT)

    private_key = sub.add_parser("private-key", help="Print an RSA keypair as JSON")
    private_key.add_argument("--modulus-length", type=int, default=RSA_KEY_SIZE)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        if args.command == "api-key":
            print(generate_api_key(args.length))
        else:
            print(generate_private_key_json(args.modulus_length))
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
