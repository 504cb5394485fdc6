"""Storage configuration for the S3-compatible object store."""

import boto3
from botocore.client import BaseClient
from botocore.config import Config
from .settings import settings


def get_storage_client() -> BaseClient:
    """
    Get storage client for the configured bucket.
    Supabase Storage exposes an S3-compatible endpoint, so the same boto3
    client works against it or against plain S3.
    """
    kwargs = {
        "aws_access_key_id": settings.storage_access_key_id or None,
        "aws_secret_access_key": settings.storage_secret_access_key or None,
        "region_name": settings.storage_region,
        "config": Config(signature_version="s3v4", s3={"addressing_style": "path"}),
    }
    if settings.storage_endpoint_url:
        kwargs["endpoint_url"] = settings.storage_endpoint_url

    return boto3.client("s3", **kwargs)


def get_bucket_name() -> str:
    """Get bucket name for podcast uploads."""
    return settings.storage_bucket
