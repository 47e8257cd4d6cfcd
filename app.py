"""
Command-line front end for Whisk batch image generation.

Commands:
- generate: run one batch for a prompt, print the result as JSON
- accounts list|add|delete: manage saved accounts
- check-auth: probe whether a cookie is still accepted
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Sequence

from app_context import AppContext, create_app_context
from config import Config
from core.cookies import cookie_header, parse_cookie_input
from core.models import BatchResult, Credential, GenerationRequest
from core.storage import account_to_dict

logger = logging.getLogger(__name__)


def _parse_header(raw: str) -> tuple[str, str]:
    name, sep, value = raw.partition(":")
    if not sep or not name.strip():
        raise argparse.ArgumentTypeError(f"expected 'Name: value', got {raw!r}")
    return name.strip(), value.strip()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="autowhisk", description=__doc__.strip().splitlines()[0])
    commands = parser.add_subparsers(dest="command", required=True)

    gen = commands.add_parser("generate", help="generate a batch of images")
    gen.add_argument("prompt")
    gen.add_argument("--ratio", default="16:9", help="16:9, 9:16 or 1:1")
    gen.add_argument("--count", type=int, default=1)
    gen.add_argument("--ref", action="append", default=[], help="reference image path or data URI")
    gen.add_argument("--save-folder", default=None)
    gen.add_argument("--workflow-id", default=None, help="reuse an existing project")
    gen.add_argument("--account", default=None, help="saved account id")
    gen.add_argument("--cookie", default="")
    gen.add_argument("--token", default="", help="ya29. bearer token")
    gen.add_argument(
        "--header",
        action="append",
        type=_parse_header,
        default=None,
        help="extra 'Name: value' header, replaces the default browser identity headers",
    )

    accounts = commands.add_parser("accounts", help="manage saved accounts")
    account_commands = accounts.add_subparsers(dest="accounts_command", required=True)
    account_commands.add_parser("list")
    add = account_commands.add_parser("add")
    add.add_argument("email")
    add.add_argument("cookie")
    add.add_argument("--token", default=None)
    delete = account_commands.add_parser("delete")
    delete.add_argument("id")

    check = commands.add_parser("check-auth", help="check whether a cookie is accepted")
    check.add_argument("cookie")

    return parser


def _print_json(payload: object) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


async def run_generate(app: AppContext, args: argparse.Namespace) -> BatchResult:
    credential = Credential(cookie=args.cookie, bearer_token=args.token)
    extra_headers = dict(args.header) if args.header else None

    if args.account:
        account = app.accounts.get(args.account)
        if account is None:
            return BatchResult(success=False, error=f"Unknown account: {args.account}")
        credential = account.credential()
        if extra_headers is None and account.headers:
            extra_headers = dict(account.headers)

    request = GenerationRequest(
        prompt=args.prompt,
        aspect_ratio=args.ratio,
        count=args.count,
        reference_images=list(args.ref),
        extra_headers=extra_headers,
        save_folder=args.save_folder,
        workflow_id=args.workflow_id,
    )
    return await app.generator.run(credential, request)


async def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    cfg = Config.from_env()
    logging.basicConfig(
        level=getattr(logging, cfg.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    app = create_app_context(cfg)
    try:
        if args.command == "generate":
            result = await run_generate(app, args)
            _print_json(result.to_dict())
            return 0 if result.success else 1

        if args.command == "check-auth":
            ok = await app.client.test_auth(cookie_header(args.cookie))
            logger.info("Cookie %s", "accepted" if ok else "rejected")
            _print_json({"authenticated": ok})
            return 0 if ok else 1

        if args.accounts_command == "list":
            _print_json([account_to_dict(account) for account in app.accounts.list()])
        elif args.accounts_command == "add":
            account = app.accounts.add(
                args.email,
                parse_cookie_input(args.cookie),
                bearer_token=args.token,
            )
            _print_json(account_to_dict(account))
        elif args.accounts_command == "delete":
            deleted = app.accounts.delete(args.id)
            _print_json({"deleted": deleted})
            return 0 if deleted else 1
        return 0
    finally:
        await app.close()


def run() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
