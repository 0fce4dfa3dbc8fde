"""CLI tools for finance-tracker administration."""

import asyncio
import logging
import secrets
import sys
from datetime import datetime, timedelta, timezone

from .auth.dependencies import hash_token
from .config import settings
from .db.engine import AsyncSessionLocal
from .db.models import APIToken
from .db.repositories import APITokenRepository
from .services.budgets import BudgetService


async def _create_token(
    owner_id: str,
    name: str,
    scope: str = "write",
    expires_in_days: int | None = None,
) -> tuple[str, APIToken]:
    """Create an API token acting for one owner."""
    if not settings.has_database:
        raise RuntimeError("DATABASE_URL not configured")

    raw_token = secrets.token_urlsafe(32)

    expires_at = None
    if expires_in_days:
        expires_at = datetime.now(timezone.utc) + timedelta(days=expires_in_days)

    async with AsyncSessionLocal() as session:
        repo = APITokenRepository(session)
        token = await repo.create(
            token_hash=hash_token(raw_token),
            owner_id=owner_id,
            name=name,
            scope=scope,
            expires_at=expires_at,
        )
        await session.commit()

    return raw_token, token


async def _list_tokens() -> list[APIToken]:
    if not settings.has_database:
        raise RuntimeError("DATABASE_URL not configured")

    async with AsyncSessionLocal() as session:
        repo = APITokenRepository(session)
        return list(await repo.get_all(include_inactive=True))


async def _revoke_token(token_id: int) -> bool:
    if not settings.has_database:
        raise RuntimeError("DATABASE_URL not configured")

    async with AsyncSessionLocal() as session:
        repo = APITokenRepository(session)
        success = await repo.revoke(token_id)
        await session.commit()
        return success


async def _refresh_statuses(owner_id: str) -> tuple[int, int]:
    if not settings.has_database:
        raise RuntimeError("DATABASE_URL not configured")

    async with AsyncSessionLocal() as session:
        return await BudgetService(session).refresh_statuses(owner_id)


def create_token(
    owner_id: str,
    name: str,
    scope: str = "write",
    expires_in_days: int | None = None,
) -> None:
    """Create an API token and print it once.

    The token value cannot be retrieved again.
    """
    try:
        raw_token, token = asyncio.run(_create_token(owner_id, name, scope, expires_in_days))
    except Exception as e:
        print(f"Error creating token: {e}", file=sys.stderr)
        sys.exit(1)

    print("\nAPI token created successfully!")
    print(f"  ID: {token.id}")
    print(f"  Owner: {token.owner_id}")
    print(f"  Name: {token.name}")
    print(f"  Scope: {token.scope}")
    print(f"  Expires: {token.expires_at.isoformat() if token.expires_at else 'Never'}")
    print(f"\n  Token: {raw_token}")
    print("\n  IMPORTANT: Save this token securely. It cannot be retrieved again!")
    print(
        f"\n  Usage: curl -H 'Authorization: Bearer {raw_token}' "
        f"http://localhost:{settings.port}{settings.api_prefix}/savings"
    )


def list_tokens() -> None:
    """List all API tokens."""
    try:
        tokens = asyncio.run(_list_tokens())
    except Exception as e:
        print(f"Error listing tokens: {e}", file=sys.stderr)
        sys.exit(1)

    if not tokens:
        print("No API tokens found.")
        return

    print(f"\nAPI Tokens ({len(tokens)} total):")
    print("-" * 80)
    for t in tokens:
        status = "active" if t.is_active else "revoked"
        expires = t.expires_at.isoformat() if t.expires_at else "never"
        last_used = t.last_used_at.isoformat() if t.last_used_at else "never"
        print(f"  ID: {t.id}")
        print(f"    Owner: {t.owner_id}")
        print(f"    Name: {t.name}")
        print(f"    Scope: {t.scope}")
        print(f"    Status: {status}")
        print(f"    Expires: {expires}")
        print(f"    Last used: {last_used}")
        print()


def revoke_token(token_id: int) -> None:
    """Revoke an API token by ID."""
    try:
        success = asyncio.run(_revoke_token(token_id))
    except Exception as e:
        print(f"Error revoking token: {e}", file=sys.stderr)
        sys.exit(1)

    if not success:
        print(f"Token {token_id} not found.", file=sys.stderr)
        sys.exit(1)
    print(f"Token {token_id} revoked successfully.")


def refresh_statuses(owner_id: str) -> None:
    """Bring an owner's budget statuses up to date with today's date."""
    try:
        activated, completed = asyncio.run(_refresh_statuses(owner_id))
    except Exception as e:
        print(f"Error refreshing budget statuses: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"Budgets activated: {activated}, completed: {completed}")


def main() -> None:
    """Main CLI entry point."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Finance tracker administration tools",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--verbose", action="store_true", help="Log debug output")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    create_parser = subparsers.add_parser("create-token", help="Create a new API token")
    create_parser.add_argument("--owner", required=True, help="Owner the token acts for")
    create_parser.add_argument("--name", default="default", help="Name for the token")
    create_parser.add_argument(
        "--scope",
        choices=["read", "write", "admin"],
        default="write",
        help="Token scope (default: write)",
    )
    create_parser.add_argument(
        "--expires-in-days",
        type=int,
        default=None,
        help="Days until expiration (default: never)",
    )

    subparsers.add_parser("list-tokens", help="List all API tokens")

    revoke_parser = subparsers.add_parser("revoke-token", help="Revoke an API token")
    revoke_parser.add_argument("token_id", type=int, help="ID of the token to revoke")

    refresh_parser = subparsers.add_parser(
        "refresh-statuses", help="Activate and complete budgets according to today's date"
    )
    refresh_parser.add_argument("--owner", required=True, help="Owner whose budgets to refresh")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    if args.command == "create-token":
        create_token(args.owner, args.name, args.scope, args.expires_in_days)
    elif args.command == "list-tokens":
        list_tokens()
    elif args.command == "revoke-token":
        revoke_token(args.token_id)
    elif args.command == "refresh-statuses":
        refresh_statuses(args.owner)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
