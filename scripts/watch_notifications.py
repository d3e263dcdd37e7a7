#!/usr/bin/env python3
"""
Follow live notifications for one user from the terminal.

This script:
1. Opens the live connection with the given access token
2. Loads the first page of notifications and the unread count
3. Optionally follows one order's status room
4. Logs every push until interrupted (Ctrl+C)

Usage:
  python scripts/watch_notifications.py --user-id USER --token JWT [--order-id ORDER]
"""

import asyncio
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.domain.models.session_user import SessionUser
from src.domain.value_objects.role import Role
from src.interfaces.client.live_client import LiveOrdersClient


async def watch(user: SessionUser, token: str, order_id: str | None = None) -> None:
    client = LiveOrdersClient()
    try:
        await client.login(user, token)
        print(f"🔔 Unread notifications: {client.store.unread_count}")
        for notification in client.store.notifications[:5]:
            marker = " " if notification.read else "•"
            print(f"   {marker} [{notification.type}] {notification.title}")

        def on_order_update(data):
            print(f"📦 Order update: {data.get('orderNumber')} -> {data.get('status')}")

        def on_admin_order(data):
            print(f"🍽️  New order: #{data.get('orderNumber')}")

        subscriptions = [client.admin_updates(on_new_order=on_admin_order)]
        if order_id:
            subscriptions.append(client.order_updates(order_id, on_order_update))
        for subscription in subscriptions:
            subscription.activate()
        try:
            while True:
                await asyncio.sleep(1)
        finally:
            for subscription in subscriptions:
                subscription.deactivate()
    finally:
        await client.aclose()


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(
        description="Follow live order notifications",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Follow a customer's notifications
  python scripts/watch_notifications.py --user-id 64f0c2 --token eyJhbGciOi...

  # Follow as admin and track one order
  python scripts/watch_notifications.py --user-id 64f0c2 --role admin
  --token eyJhbGciOi... --order-id 650a11
        """,
    )
    parser.add_argument("--user-id", required=True, help="ID of the signed-in user")
    parser.add_argument("--token", required=True, help="JWT access token")
    parser.add_argument(
        "--role", choices=[r.value for r in Role], default=Role.CUSTOMER.value, help="User role"
    )
    parser.add_argument("--order-id", help="Order whose status room to follow (optional)")

    args = parser.parse_args()

    print("=" * 60)
    print("🚀 Live order notifications")
    print("=" * 60)

    try:
        asyncio.run(watch(SessionUser(id=args.user_id, role=Role(args.role)), args.token, args.order_id))
    except KeyboardInterrupt:
        pass

    print("\n" + "=" * 60)
    print("✨ Stopped")
    print("=" * 60)
