#!/usr/bin/env python3
"""
Reset an account's password in the reading list SQLite database.

This script DOES NOT read or reveal any existing password.  It stores a
new salted hash (PBKDF2-HMAC-SHA256, format "salthex$hashhex") for the
given username, which is matched case-insensitively.

Usage:
    python reset_password.py --db ./reading_list.db --username dreamseak --password "NewStrongPass!234"

If --password is omitted, you will be prompted to enter it securely.
"""

import argparse
import getpass
import os
import sqlite3
import sys

from reading_list_api.app.core.security import hash_password


def main():
    ap = argparse.ArgumentParser(description="Reset a reading list account password (SQLite).")
    ap.add_argument("--db", required=True, help="Path to SQLite DB file (e.g., ./reading_list.db)")
    ap.add_argument("--username", required=True, help="Account to update")
    ap.add_argument("--password", help="New password. If omitted, you'll be prompted securely.")
    args = ap.parse_args()

    if not os.path.exists(args.db):
        print(f"[!] DB not found: {args.db}", file=sys.stderr)
        sys.exit(1)

    username = args.username.strip().lower()
    new_password = args.password or getpass.getpass("Enter NEW password: ")
    if not new_password:
        print("[!] Empty password is not allowed.", file=sys.stderr)
        sys.exit(1)

    conn = sqlite3.connect(args.db)
    try:
        cur = conn.cursor()
        cur.execute("SELECT username FROM users WHERE username = ?", (username,))
        if not cur.fetchone():
            print(f"[!] No account found with username: {username}", file=sys.stderr)
            sys.exit(2)

        cur.execute(
            "UPDATE users SET password_hash = ? WHERE username = ?",
            (hash_password(new_password), username),
        )
        conn.commit()
        print(f"[+] Password updated for account: {username}")
    finally:
        conn.close()


if __name__ == "__main__":
    main()
