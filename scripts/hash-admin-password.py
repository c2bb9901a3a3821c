#!/usr/bin/env python3
"""
Print the ADMIN_PASSWORD_HASH value for a new admin password.

The backend compares the SHA-256 hex digest of the submitted password with
ADMIN_PASSWORD_HASH. To change the admin password:

1. Run this script and enter the new password
2. Set the printed digest as the ADMIN_PASSWORD_HASH environment variable
   of the Lambda function(s)
3. Redeploy

Usage:
    python scripts/hash-admin-password.py
    python scripts/hash-admin-password.py --password 'new-password'
"""

import argparse
import getpass
import hashlib
import sys


def main():
    parser = argparse.ArgumentParser(description="Hash an admin password for ADMIN_PASSWORD_HASH")
    parser.add_argument("--password", help="Password to hash (prompted for if omitted)")
    args = parser.parse_args()

    password = args.password
    if password is None:
        password = getpass.getpass("New admin password: ")
        if password != getpass.getpass("Repeat password: "):
            print("❌ Passwords do not match", file=sys.stderr)
            return 1

    if not password:
        print("❌ Password cannot be empty", file=sys.stderr)
        return 1

    print(hashlib.sha256(password.encode("utf-8")).hexdigest())
    return 0


if __name__ == "__main__":
    sys.exit(main())
