"""
Object storage utilities for professional verification documents.
Handles upload to the S3-compatible bucket, presigned URLs and validation.
"""

import logging
from datetime import datetime
from typing import Optional

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from ..config import (
    STORAGE_ACCESS_KEY_ID,
    STORAGE_BUCKET_NAME,
    STORAGE_ENDPOINT_URL,
    STORAGE_REGION,
    STORAGE_SECRET_ACCESS_KEY,
)
from .sanitization import sanitize_filename_part

logger = logging.getLogger(__name__)

PRESIGNED_URL_EXPIRATION = 3600  # 1 hour
MAX_DOCUMENT_SIZE_BYTES = 10 * 1024 * 1024  # 10MB
ALLOWED_DOCUMENT_MIME_TYPES = {
    "application/pdf": "pdf",
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}


class StorageError(Exception):
    """Raised when the object store rejects an operation"""

    pass


def get_storage_client():
    """Get configured boto3 client for the document bucket"""
    return boto3.client(
        "s3",
        endpoint_url=STORAGE_ENDPOINT_URL,
        aws_access_key_id=STORAGE_ACCESS_KEY_ID,
        aws_secret_access_key=STORAGE_SECRET_ACCESS_KEY,
        config=Config(signature_version="s3v4"),
        region_name=STORAGE_REGION,
    )


def validate_document(filename: Optional[str], size_bytes: int, mime_type: Optional[str]) -> Optional[str]:
    """
    Validate an uploaded document.

    Returns:
        Error message, or None when the file is acceptable
    """
    if size_bytes == 0:
        return "File is empty"
    if size_bytes > MAX_DOCUMENT_SIZE_BYTES:
        return f"File size exceeds maximum of {MAX_DOCUMENT_SIZE_BYTES // (1024 * 1024)}MB"
    if mime_type not in ALLOWED_DOCUMENT_MIME_TYPES:
        return "Unsupported file type. Allowed formats: PDF, JPEG, PNG, WebP"
    if filename and any(char in filename for char in ("..", "/", "\\")):
        return "Invalid filename"
    return None


def build_document_key(professional_id: int, document_type: str, mime_type: str, now: Optional[datetime] = None) -> str:
    """{professional_id}/{document_type}_{timestamp_ms}.{ext}"""
    now = now or datetime.utcnow()
    ext = ALLOWED_DOCUMENT_MIME_TYPES.get(mime_type, "bin")
    timestamp = int(now.timestamp() * 1000)
    return f"{professional_id}/{sanitize_filename_part(document_type)}_{timestamp}.{ext}"


def upload_document(key: str, content: bytes, mime_type: str) -> None:
    """Store a document privately under key"""
    try:
        get_storage_client().put_object(
            Bucket=STORAGE_BUCKET_NAME,
            Key=key,
            Body=content,
            ContentType=mime_type,
        )
        logger.info(f"✅ Uploaded document to storage: {key} ({len(content)} bytes)")
    except (BotoCoreError, ClientError) as e:
        logger.error(f"❌ Failed to upload document {key}: {e}")
        raise StorageError(str(e)) from e


def generate_presigned_url(key: str, expiration: int = PRESIGNED_URL_EXPIRATION) -> Optional[str]:
    """Presigned GET URL for a private document, None when signing fails"""
    try:
        return get_storage_client().generate_presigned_url(
            "get_object",
            Params={"Bucket": STORAGE_BUCKET_NAME, "Key": key},
            ExpiresIn=expiration,
        )
    except (BotoCoreError, ClientError) as e:
        logger.error(f"❌ Failed to generate presigned URL for key {key}: {e}")
        return None
