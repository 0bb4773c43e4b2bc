"""Object storage for avatar images."""

from __future__ import annotations

import base64
import binascii
import logging
import mimetypes
import re
import uuid

from botocore.exceptions import BotoCoreError, ClientError

from ..domain.account import Avatar
from ..domain.errors import BlobStoreFailure

logger = logging.getLogger(__name__)

_DATA_URI = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?:;[\w=.-]+)*;base64,(?P<data>.*)$", re.DOTALL)


def decode_image_source(source: str) -> tuple[bytes, str]:
    """Return ``(content, content_type)`` for a ``data:`` URI or bare base64 string."""
    match = _DATA_URI.match(source.strip())
    content_type = "application/octet-stream"
    encoded = source.strip()
    if match:
        content_type = match.group("mime") or content_type
        encoded = match.group("data")
    try:
        content = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise BlobStoreFailure("Invalid image data", status_code=400) from exc
    if not content:
        raise BlobStoreFailure("Invalid image data", status_code=400)
    return content, content_type


class S3BlobStore:
    """Upload and destroy avatar images in an S3 compatible bucket.

    ``resource_id`` is the object key; ``url`` is built from ``public_base_url``
    when configured, otherwise from the regional virtual-hosted bucket address.
    """

    def __init__(self, client, *, bucket: str, region: str = "us-east-1", public_base_url: str = "") -> None:
        self._client = client
        self._bucket = bucket
        self._region = region
        self._public_base_url = public_base_url.rstrip("/")

    def upload(self, source: str, *, folder: str = "avatars") -> Avatar:
        if not self._bucket:
            raise BlobStoreFailure("Image storage is not configured")
        content, content_type = decode_image_source(source)
        extension = mimetypes.guess_extension(content_type) or ""
        key = f"{folder}/{uuid.uuid4().hex}{extension}"
        try:
            self._client.put_object(Bucket=self._bucket, Key=key, Body=content, ContentType=content_type)
        except (ClientError, BotoCoreError) as exc:
            logger.error("avatar upload to %s failed: %s", self._bucket, exc)
            raise BlobStoreFailure(f"Image upload failed: {exc}") from exc
        return Avatar(resource_id=key, url=self._url_for(key))

    def destroy(self, resource_id: str) -> None:
        try:
            self._client.delete_object(Bucket=self._bucket, Key=resource_id)
        except (ClientError, BotoCoreError) as exc:
            logger.error("destroying %s in %s failed: %s", resource_id, self._bucket, exc)
            raise BlobStoreFailure(f"Image removal failed: {exc}") from exc

    def _url_for(self, key: str) -> str:
        if self._public_base_url:
            return f"{self._public_base_url}/{key}"
        return f"https://{self._bucket}.s3.{self._region}.amazonaws.com/{key}"
