"""Utility script to deliver a system announcement to users."""

from __future__ import annotations

import argparse

from sqlalchemy.exc import SQLAlchemyError

from ticket_notifications.application.use_cases.notifications import (
    NotificationDispatcher,
    broadcast_system_notification,
)
from ticket_notifications.infrastructure.database import SessionLocal, initialize_database
from ticket_notifications.infrastructure.models import UserModel


def parse_args() -> argparse.Namespace:
    """Parse command line arguments for the announcement."""

    parser = argparse.ArgumentParser(
        description="Send a system notification to every user or to selected users.",
    )
    parser.add_argument("message", help="Text of the announcement")
    parser.add_argument(
        "--user",
        dest="user_ids",
        action="append",
        default=None,
        help="Recipient user id; repeat for several users (default: every profile)",
    )
    return parser.parse_args()


def _all_user_ids() -> list[str]:
    session = SessionLocal()
    try:
        return [row.id for row in session.query(UserModel.id).order_by(UserModel.id)]
    finally:
        session.close()


def main() -> None:
    """Deliver the announcement using the provided command line arguments."""

    args = parse_args()
    initialize_database()

    try:
        recipients = args.user_ids or _all_user_ids()
    except SQLAlchemyError as exc:
        raise SystemExit(f"Could not load users from the database: {exc}") from exc
    if not recipients:
        raise SystemExit("No recipients found.")

    dispatcher = NotificationDispatcher(SessionLocal)
    try:
        report = broadcast_system_notification(args.message, recipients, dispatcher=dispatcher)
    except ValueError as exc:
        raise SystemExit(f"Could not send the announcement: {exc}") from exc
    finally:
        dispatcher.shutdown()

    print(
        "Announcement delivered:\n"
        f"  Stored: {len(report.created)} of {len(recipients)}\n"
        f"  Failed: {', '.join(report.failed_recipients) or '-'}\n"
        f"  Emails attempted: {len(report.mail_attempts)}"
    )


if __name__ == "__main__":
    main()
