"""
Object storage API layer.

Async access to S3-compatible providers through aiobotocore.
"""

from s3crypt.api.http_client import AsyncS3Client, sanitize_for_log

__all__ = ["AsyncS3Client", "sanitize_for_log"]
