"""
S3 storage utilities for book files

PDFs and cover images are private objects in BUCKET_NAME under BOOKS_PREFIX.
Clients only ever see presigned GET URLs.
"""

from __future__ import annotations

import logging

import library_backend.config as config

logger = logging.getLogger(__name__)

COVER_EXTENSIONS = {"jpeg": "jpg", "jpg": "jpg", "png": "png", "webp": "webp", "gif": "gif"}


def pdf_object_key(book_id: str) -> str:
    return f"{config.BOOKS_PREFIX}{book_id}.pdf"


def cover_object_key(book_id: str, content_type: str | None, filename: str | None = None) -> str:
    """
    Build the object key for a cover image.

    The extension comes from the image MIME subtype, then the filename,
    defaulting to jpg.
    """
    ext = None
    if content_type and "/" in content_type:
        ext = COVER_EXTENSIONS.get(content_type.split("/", 1)[1].split(";")[0].strip().lower())
    if not ext and filename and "." in filename:
        ext = COVER_EXTENSIONS.get(filename.rsplit(".", 1)[1].lower())
    return f"{config.BOOKS_PREFIX}{book_id}_cover.{ext or 'jpg'}"


def upload_object(key: str, content: bytes, content_type: str) -> None:
    """
    Upload bytes to the books bucket, overwriting any existing object.

    Raises:
        ClientError: If the upload fails
    """
    logger.info(f"Uploading s3://{config.BUCKET_NAME}/{key} ({len(content)} bytes)")
    config.s3_client.put_object(
        Bucket=config.BUCKET_NAME,
        Key=key,
        Body=content,
        ContentType=content_type,
    )


def delete_object(key: str) -> None:
    """
    Delete an object from the books bucket.

    Raises:
        ClientError: If S3 deletion fails
    """
    logger.info(f"Deleting S3 object: s3://{config.BUCKET_NAME}/{key}")
    config.s3_client.delete_object(Bucket=config.BUCKET_NAME, Key=key)


def presigned_url(key: str) -> str:
    """Generate a presigned GET URL valid for SIGNED_URL_EXPIRY_SECONDS."""
    return config.s3_client.generate_presigned_url(
        "get_object",
        Params={"Bucket": config.BUCKET_NAME, "Key": key},
        ExpiresIn=config.SIGNED_URL_EXPIRY_SECONDS,
    )
