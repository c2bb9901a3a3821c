#!/usr/bin/env python3
"""
Delete expired admin tokens from the key-value table.

Expired tokens are normally removed the first time they are presented after
expiry. Tokens that are never presented again stay in the table; this script
sweeps them.

Environment Variables (optional):
    AWS_PROFILE: AWS profile name (default: 'default')
    AWS_REGION: AWS region (default: 'us-east-2')
    KV_TABLE: DynamoDB table name (default: 'LibraryKV')

Usage:
    python scripts/purge-admin-tokens.py [--dry-run] [--all]
"""

import argparse
import os
import time

import boto3

PROFILE = os.environ.get("AWS_PROFILE", "default")
REGION = os.environ.get("AWS_REGION", "us-east-2")
TABLE_NAME = os.environ.get("KV_TABLE", "LibraryKV")
TOKEN_PREFIX = "admin_token:"


def scan_tokens(table):
    """Yield every admin token item, following scan pagination."""
    scan_kwargs = {
        "FilterExpression": "begins_with(#k, :prefix)",
        "ExpressionAttributeNames": {"#k": "key"},
        "ExpressionAttributeValues": {":prefix": TOKEN_PREFIX},
    }
    response = table.scan(**scan_kwargs)
    yield from response.get("Items", [])
    while "LastEvaluatedKey" in response:
        response = table.scan(ExclusiveStartKey=response["LastEvaluatedKey"], **scan_kwargs)
        yield from response.get("Items", [])


def main():
    parser = argparse.ArgumentParser(description="Purge expired admin tokens")
    parser.add_argument("--dry-run", action="store_true", help="Only report what would be deleted")
    parser.add_argument("--all", action="store_true", help="Revoke every admin token, expired or not")
    args = parser.parse_args()

    session = boto3.Session(profile_name=PROFILE, region_name=REGION)
    table = session.resource("dynamodb").Table(TABLE_NAME)
    now = int(time.time() * 1000)

    print(f"📊 Target DynamoDB table: {TABLE_NAME}")
    if args.dry_run:
        print("🔍 DRY RUN - no changes will be made")
    print()

    found = 0
    purged = 0
    for item in scan_tokens(table):
        found += 1
        value = item.get("value") or {}
        expires_at = int(value.get("expiresAt") or 0)
        if not args.all and expires_at > now:
            continue

        if args.dry_run:
            print(f"Would delete token expiring at {expires_at}")
        else:
            table.delete_item(Key={"key": item["key"]})
        purged += 1

    print()
    print("=" * 60)
    print(f"Admin tokens found: {found}")
    print(f"Admin tokens {'to delete' if args.dry_run else 'deleted'}: {purged}")
    print("=" * 60)


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print("\n⚠️  Interrupted by user")
