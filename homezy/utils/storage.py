"""
File storage utilities backed by Cloudflare R2.
Handles uploads for verification documents, portfolio photos and message
attachments, plus public/presigned URL generation.
"""

import hashlib
import logging
from datetime import datetime
from typing import Optional, Tuple

import boto3
from botocore.client import Config
from botocore.exceptions import ClientError

from ..config import (
    R2_ACCESS_KEY_ID,
    R2_ACCOUNT_ID,
    R2_BUCKET_NAME,
    R2_PUBLIC_URL,
    R2_SECRET_ACCESS_KEY,
)
from ..constants import ALLOWED_DOCUMENT_TYPES, ALLOWED_IMAGE_TYPES, PLATFORM_CONFIG
from ..exceptions import BadRequestError

logger = logging.getLogger(__name__)

EXTENSIONS_BY_MIME = {
    "image/jpeg": ["jpg", "jpeg"],
    "image/png": ["png"],
    "image/webp": ["webp"],
    "application/pdf": ["pdf"],
}


def get_r2_client():
    """Get configured boto3 client for Cloudflare R2"""
    return boto3.client(
        "s3",
        endpoint_url=f"https://{R2_ACCOUNT_ID}.r2.cloudflarestorage.com",
        aws_access_key_id=R2_ACCESS_KEY_ID,
        aws_secret_access_key=R2_SECRET_ACCESS_KEY,
        config=Config(signature_version="s3v4"),
        region_name="auto",
    )


def validate_upload(
    filename: str, size_bytes: int, mime_type: str, documents: bool = False
) -> Tuple[bool, Optional[str]]:
    """
    Validate a file before upload.

    Returns:
        Tuple of (is_valid, error_message)
    """
    max_size = PLATFORM_CONFIG["MAX_FILE_SIZE"]
    if size_bytes > max_size:
        return False, f"File size exceeds maximum of {max_size / (1024 * 1024):.0f}MB"
    if size_bytes == 0:
        return False, "File is empty"

    allowed = ALLOWED_DOCUMENT_TYPES if documents else ALLOWED_IMAGE_TYPES
    if mime_type not in allowed:
        return False, f"File type not supported. Allowed types: {', '.join(allowed)}"

    ext = filename.lower().rsplit(".", 1)[-1] if "." in filename else ""
    if ext not in EXTENSIONS_BY_MIME.get(mime_type, []):
        return False, "File extension does not match its content type"

    return True, None


def generate_storage_key(folder: str, owner_id: int, filename: str) -> str:
    """
    Generate a unique R2 key.

    Format: {folder}/{owner_id}/{timestamp}_{hash}_{filename}
    """
    timestamp = datetime.utcnow().strftime("%Y%m%d_%H%M%S%f")
    file_hash = hashlib.md5(f"{owner_id}{timestamp}{filename}".encode()).hexdigest()[:8]
    safe_filename = "".join(c for c in filename if c.isalnum() or c in "._-")[:100]
    return f"{folder}/{owner_id}/{timestamp}_{file_hash}_{safe_filename}"


def public_url_for(key: str) -> str:
    if R2_PUBLIC_URL:
        return f"{R2_PUBLIC_URL.rstrip('/')}/{key}"
    return f"https://{R2_BUCKET_NAME}.{R2_ACCOUNT_ID}.r2.cloudflarestorage.com/{key}"


def upload_file(
    file_content: bytes,
    key: str,
    mime_type: str,
    private: bool = False,
    metadata: Optional[dict] = None,
) -> str:
    """
    Upload bytes to R2 and return the public URL (or the key for private files).

    Raises:
        BadRequestError: when the storage backend rejects the upload
    """
    extra_args = {"ContentType": mime_type}
    if private:
        extra_args["ACL"] = "private"
    if metadata:
        extra_args["Metadata"] = metadata

    try:
        s3_client = get_r2_client()
        s3_client.put_object(Bucket=R2_BUCKET_NAME, Key=key, Body=file_content, **extra_args)
    except ClientError as e:
        logger.error(f"❌ Error uploading {key} to R2: {e}")
        raise BadRequestError("File upload failed, please try again", code="UPLOAD_FAILED") from e

    logger.info(f"📤 Uploaded {key} ({len(file_content)} bytes)")
    return key if private else public_url_for(key)


def generate_presigned_url(key: str, expiration_minutes: int = 15) -> Optional[str]:
    """Presigned GET URL for private objects such as verification documents"""
    try:
        s3_client = get_r2_client()
        return s3_client.generate_presigned_url(
            "get_object",
            Params={"Bucket": R2_BUCKET_NAME, "Key": key},
            ExpiresIn=expiration_minutes * 60,
        )
    except ClientError as e:
        logger.error(f"❌ Error generating presigned URL: {e}")
        return None


def delete_file(key: str) -> bool:
    try:
        s3_client = get_r2_client()
        s3_client.delete_object(Bucket=R2_BUCKET_NAME, Key=key)
        return True
    except ClientError as e:
        logger.error(f"❌ Error deleting {key} from R2: {e}")
        return False
