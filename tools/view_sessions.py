"""
Simple script to view stored Farm Passport sessions
"""

import json
import os
import sqlite3
import sys


def mask(token):
    if not token:
        return "<none>"
    if len(token) <= 8:
        return "*" * len(token)
    return token[:4] + "*" * 8 + "..."


def view_sessions(db_path="farm_passport.db"):
    """Print each stored session key with its user and a masked token"""

    if not os.path.exists(db_path):
        print(f"❌ Database file not found: {db_path}")
        return 1

    print(f"📊 Viewing sessions in: {db_path}")
    print("=" * 50)

    try:
        conn = sqlite3.connect(db_path)
        cursor = conn.cursor()

        cursor.execute("SELECT name FROM sqlite_master WHERE type='table' AND name='Session';")
        if not cursor.fetchone():
            print("❌ Session table not found")
            return 1

        cursor.execute("SELECT key, payload, updatedAt FROM Session ORDER BY key;")
        rows = cursor.fetchall()
        conn.close()
    except sqlite3.Error as e:
        print(f"❌ Error reading database: {e}")
        return 1

    if not rows:
        print("📄 No stored sessions")
        return 0

    for key, payload, updated_at in rows:
        print(f"🗂️  {key} (updated {updated_at})")
        try:
            record = json.loads(payload)
        except ValueError:
            print("  ⚠️  unreadable payload, treated as logged out")
            continue
        user = record.get("user") or {}
        print(f"  email: {user.get('email', '<none>')}")
        name = user.get("display_name") or user.get("restaurant_name")
        if name:
            print(f"  name:  {name}")
        print(f"  token: {mask(record.get('token'))}")
        print()

    return 0


if __name__ == "__main__":
    sys.exit(view_sessions(sys.argv[1] if len(sys.argv) > 1 else "farm_passport.db"))
