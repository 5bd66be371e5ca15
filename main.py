#!/usr/bin/env python3
"""
labelguard - protected-label admission webhook.
Only allow-listed users may set the protected label on objects.
"""

import argparse
import logging
import sys
from dataclasses import replace
from typing import List, Optional, Tuple

from labelguard.authz.policy import PolicyConfig, load_policy_config
from labelguard.config import ServerConfig, load_server_config

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s", stream=sys.stderr
)

logger = logging.getLogger("labelguard")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Validating admission webhook: only allow-listed users may set a protected label",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Only the team controller may set example.com/team
  python main.py --tls-cert-file /certs/tls.crt --tls-key-file /certs/tls.key \\
      --protected-label example.com/team \\
      --allow-user system:serviceaccount:platform:team-controller

Every flag has an env fallback (TLS_CERT_FILE, TLS_KEY_FILE, PROTECTED_LABEL,
ALLOWED_USERS=user1,user2, HOST, PORT, LOG_LEVEL).
        """,
    )
    parser.add_argument(
        "--tls-cert-file",
        help="File containing the default x509 Certificate for HTTPS. "
        "(CA cert, if any, concatenated after server cert).",
    )
    parser.add_argument(
        "--tls-key-file", help="File containing the default x509 private key matching --tls-cert-file."
    )
    parser.add_argument(
        "--protected-label", help="Object label that only specified users can set (empty disables the policy)."
    )
    parser.add_argument(
        "--allow-user",
        action="append",
        default=[],
        metavar="USERNAME",
        help="Username that is allowed to set protected label (may be specified multiple times).",
    )
    parser.add_argument("--host", help="Bind host (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, help="Listen port (default: 443)")
    parser.add_argument("--log-level", help="Log level (default: INFO)")
    return parser


def build_configs(argv: Optional[List[str]] = None) -> Tuple[ServerConfig, PolicyConfig]:
    """Parse flags and merge them over env-loaded configuration."""
    args = build_parser().parse_args(argv)

    server = load_server_config()
    overrides = {
        "host": args.host,
        "port": args.port,
        "tls_cert_file": args.tls_cert_file,
        "tls_key_file": args.tls_key_file,
        "log_level": args.log_level.upper() if args.log_level else None,
    }
    server = replace(server, **{k: v for k, v in overrides.items() if v is not None})

    policy = load_policy_config(protected_label=args.protected_label, allowed_users=args.allow_user)
    return server, policy


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    from labelguard.api.webhook import run

    server, policy = build_configs(argv)
    try:
        run(server, policy)
    except OSError as e:
        # Certificate/key problems (and bind failures) are fatal: never serve without TLS.
        logger.error("Cannot start admission webhook: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
