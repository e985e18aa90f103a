"""
Command line entry point for issuing access tokens and inspecting store ids.

    store-auth issue --audience purchase
    store-auth inspect <user-store-id>
"""

import argparse
import asyncio
import json
import sys
from typing import Any, Dict, List, Optional

import httpx

from shared.config import StoreAuthConfig, get_config
from shared.errors import StoreServicesException
from shared.logging import configure_logging, set_credential_context
from .store_id import ScopedIdentityCredential
from .tokens import ServiceCredentialIssuer, audiences
from .transport import HttpTransport


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="store-auth", description="Store Services credential tooling.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    issue = subparsers.add_parser("issue", help="Issue an access token with the configured client credentials")
    issue.add_argument(
        "--audience",
        default="service",
        help="service, collections, purchase, or a full audience URI"
    )
    issue.add_argument("--show-token", action="store_true", help="Include the bearer token in the output")

    inspect = subparsers.add_parser("inspect", help="Decode a user store id")
    inspect.add_argument("key", help="The user store id (JWT)")

    return parser.parse_args(argv)


async def issue_token(
    config: StoreAuthConfig,
    audience: str,
    show_token: bool = False,
    transport: Optional[HttpTransport] = None,
) -> Dict[str, Any]:
    issuer = ServiceCredentialIssuer.from_config(config, transport=transport)
    token = await issuer.issue(audiences.BY_NAME.get(audience, audience))

    summary: Dict[str, Any] = {
        "audience": token.audience,
        "token_type": token.token_type,
        "expires_at": token.expires_at.isoformat(),
    }
    if show_token:
        summary["access_token"] = token.token
    return summary


def inspect_store_id(key: str) -> Dict[str, Any]:
    store_id = ScopedIdentityCredential(key)
    return {
        "key_type": store_id.key_type.value,
        "expires": store_id.expires.isoformat(),
        "refresh_uri": store_id.refresh_uri,
        "expired": store_id.is_expired(),
    }


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    config = get_config()
    configure_logging("store_auth", config.log_level)
    set_credential_context(config.tenant_id, config.client_id)

    try:
        if args.command == "issue":
            summary = asyncio.run(issue_token(config, args.audience, args.show_token))
        else:
            summary = inspect_store_id(args.key)
    except KeyboardInterrupt:
        return 130
    except (StoreServicesException, httpx.TransportError) as exc:
        print(f"[store-auth] {args.command} failed: {exc}", file=sys.stderr)
        return 1

    print(json.dumps(summary, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
