"""
Configuration and AWS client initialization for Library API Lambda handlers

This module provides:
- AWS service clients (DynamoDB key-value table, S3, Cognito)
- Environment variable configuration
- Constants used across handlers
"""

from __future__ import annotations

import hashlib
import os
from typing import TYPE_CHECKING

import boto3
from botocore.config import Config

if TYPE_CHECKING:
    from mypy_boto3_cognito_idp.client import CognitoIdentityProviderClient
    from mypy_boto3_dynamodb.service_resource import DynamoDBServiceResource, Table
    from mypy_boto3_s3.client import S3Client

# Constants
ADMIN_TOKEN_TTL_SECONDS = 24 * 60 * 60  # 24 hours
SIGNED_URL_EXPIRY_SECONDS = 7 * 24 * 60 * 60  # SigV4 maximum
RECENT_LIMIT = 20
MAX_STRING_LENGTH = 500  # Maximum length for short string fields
MAX_TEXT_LENGTH = 5000  # Descriptions, summaries, comments, feedback
MAX_PDF_SIZE_BYTES = 50 * 1024 * 1024  # 50MB
MAX_COVER_SIZE_BYTES = 2 * 1024 * 1024  # 2MB
MIN_RATING = 1
MAX_RATING = 5

# Environment configuration
AWS_REGION = os.environ.get("AWS_REGION", "us-east-2")
KV_TABLE_NAME = os.environ.get("KV_TABLE")
BUCKET_NAME = os.environ.get("BUCKET_NAME", "YOUR_BUCKET")
BOOKS_PREFIX = os.environ.get("BOOKS_PREFIX", "books/")
USER_POOL_ID = os.environ.get("USER_POOL_ID", "")
USER_POOL_CLIENT_ID = os.environ.get("USER_POOL_CLIENT_ID", "")
USER_EMAIL_DOMAIN = os.environ.get("USER_EMAIL_DOMAIN", "booksite.local")
API_BASE_PATH = os.environ.get("API_BASE_PATH", "/library-api")
API_ANON_KEY = os.environ.get("API_ANON_KEY")

# SHA-256 of the admin password, '7777' unless overridden
ADMIN_PASSWORD_HASH = (
    os.environ.get("ADMIN_PASSWORD_HASH") or hashlib.sha256(b"7777").hexdigest()
)

# Initialize AWS clients with type hints
s3_client: "S3Client" = boto3.client(
    "s3",
    region_name=AWS_REGION,
    endpoint_url=f"https://s3.{AWS_REGION}.amazonaws.com",
    config=Config(signature_version="s3v4"),
)
cognito_client: "CognitoIdentityProviderClient" = boto3.client(
    "cognito-idp", region_name=AWS_REGION
)
dynamodb: "DynamoDBServiceResource" = boto3.resource("dynamodb", region_name=AWS_REGION)

# Initialize the key-value table
# For type checking: treat as non-None (tests will mock it)
# For production: Lambda environment must have KV_TABLE set
if KV_TABLE_NAME:
    kv_table: "Table" = dynamodb.Table(KV_TABLE_NAME)
else:
    kv_table = None  # type: ignore[assignment]
