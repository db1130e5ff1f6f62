"""Issue personalized voting links for a vote without sending any email."""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(
        description="Create personalized voting links in public.personalized_voting_links.",
    )
    parser.add_argument(
        "vote_id",
        type=str,
        help="Vote to issue links for.",
    )
    parser.add_argument(
        "--member",
        dest="member_ids",
        action="append",
        default=None,
        help="Member id to issue a link for (repeatable). Defaults to all active members.",
    )
    return parser.parse_args(argv)


def issue_links(vote_id: str, member_ids: list[str] | None) -> list[dict[str, Any]]:
    """Issue one link per target member and return ``{member, url}`` rows."""
    from svj.config import settings
    from svj.services.common import SupabaseService
    from svj.services.link_service import LinkService
    from svj.utils.errors import VoteNotFoundError
    from svj.utils.supabase_client import get_service_client

    client = get_service_client()
    db = SupabaseService(client)
    vote = db.select_one("votes", {"id": vote_id}, not_found_error=VoteNotFoundError())

    filters = {"building_id": vote["building_id"], "is_active": True}
    if member_ids:
        members = db.select_in("members", "id", member_ids, filters=filters)
    else:
        members = db.select_many("members", filters=filters, order_by="unit_number")

    links = LinkService(client)
    issued: list[dict[str, Any]] = []
    for member in members:
        link = links.issue_link(vote_id, str(member["id"]))
        issued.append({"member": member, "url": settings.voting_link_url(link["token"])})
    return issued


def print_links(issued: Sequence[dict[str, Any]]) -> None:
    """Print issued links in copy-friendly form."""
    print(f"Issued {len(issued)} voting link(s):")
    for row in issued:
        print(f"{row['member']['email']}\t{row['url']}")


def main() -> None:
    """CLI entry point."""
    args = parse_args()
    print_links(issue_links(args.vote_id, args.member_ids))


if __name__ == "__main__":
    main()
