import argparse
import asyncio
import json

import httpx

from waitlist.client.signup_form import FormState, SignupForm
from waitlist.db.session import init_store
from waitlist.models.subscriber import SubscriberStatus


async def init_schema(database_url: str | None = None) -> None:
    store = init_store(database_url)
    try:
        await store.create_schema()
    finally:
        await store.dispose()
    print("Subscriber store initialized")


async def subscriber_stats(database_url: str | None = None) -> dict[str, int]:
    store = init_store(database_url)
    try:
        return await store.count_by_status()
    finally:
        await store.dispose()


async def list_documents(database_url: str | None = None, status: SubscriberStatus | None = None) -> list[dict]:
    store = init_store(database_url)
    try:
        return [record.to_document() for record in await store.list_subscribers(status)]
    finally:
        await store.dispose()


def run_signup(url: str, email: str, *, source: str | None = None, transport: httpx.BaseTransport | None = None) -> SignupForm:
    with httpx.Client(base_url=url, timeout=10, transport=transport) as client:
        form = SignupForm(client, source=source) if source else SignupForm(client)
        form.submit(email)
    return form


def _add_store_commands(subparsers) -> None:
    init_cmd = subparsers.add_parser("init-store", help="Create the subscriber schema")
    init_cmd.add_argument("--database-url", help="Override DATABASE_URL")

    stats = subparsers.add_parser("stats", help="Print subscriber counts by status")
    stats.add_argument("--database-url", help="Override DATABASE_URL")

    listing = subparsers.add_parser("list", help="Print subscriber documents as JSON lines")
    listing.add_argument("--database-url", help="Override DATABASE_URL")
    listing.add_argument("--status", choices=[status.value for status in SubscriberStatus], help="Only this status")


def _add_signup_command(subparsers) -> None:
    signup = subparsers.add_parser("signup", help="Submit an email through the signup form")
    signup.add_argument("--url", required=True, help="Base URL of the deployment, e.g. https://orbit.example")
    signup.add_argument("--email", required=True, help="Email address to subscribe")
    signup.add_argument("--source", help="Source tag sent with the request")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Waitlist operator utilities")
    subparsers = parser.add_subparsers(dest="command")
    _add_store_commands(subparsers)
    _add_signup_command(subparsers)
    return parser


def _run_cli_command(args: argparse.Namespace) -> int | None:
    if args.command == "init-store":
        asyncio.run(init_schema(args.database_url))
        return 0

    if args.command == "stats":
        counts = asyncio.run(subscriber_stats(args.database_url))
        print(json.dumps(counts, sort_keys=True))
        return 0

    if args.command == "list":
        status = SubscriberStatus(args.status) if args.status else None
        for document in asyncio.run(list_documents(args.database_url, status)):
            print(json.dumps(document, sort_keys=True))
        return 0

    if args.command == "signup":
        form = run_signup(args.url, args.email, source=args.source)
        print(json.dumps({"state": form.state.value, "message": form.field_error or form.message}))
        if form.field_error or form.state is FormState.error:
            return 1
        return 0

    return None


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    exit_code = _run_cli_command(args)
    if exit_code is None:
        parser.print_help()
        return 2
    return exit_code


if __name__ == "__main__":
    raise SystemExit(main())
