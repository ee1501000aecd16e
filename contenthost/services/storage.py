# CONTENTHOST BACKEND

# COMPONENT: STORAGE SERVICE
# REQUIREMENTS SATISFIED: presigned upload / download / embed URLs, object deletion, upload policy
"""
contenthost/services/storage.py

Defines the storage service used by the API layer.

This module binds the stateless SigV4 signer to one configured Backblaze B2
bucket. Configuration is read from the environment (see StorageConfig) the
first time the service is requested, so importing the module never fails
on a half-configured machine.

Key responsibilities:
    - Hold bucket / region / endpoint / credential configuration
    - Issue presigned PUT, GET and long-lived embed GET URLs
    - Build public (unsigned) media URLs
    - Relay uploads and delete objects through signed PUT / DELETE requests
    - Enforce the upload policies (allowed media types, size caps, key layout)
"""
import os
import re
import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict, SecretStr

from contenthost.aws.s3_utils import delete_object, upload_object
from contenthost.aws.sigv4 import (
    DEFAULT_DOWNLOAD_EXPIRES,
    DEFAULT_EMBED_EXPIRES,
    DEFAULT_UPLOAD_EXPIRES,
    Credentials,
    sign_get,
    sign_put,
)

# -------- UPLOAD POLICY --------
ALLOWED_CONTENT_TYPES = (
    "video/mp4",
    "video/webm",
    "image/jpeg",
    "image/png",
    "image/gif",
)

MAX_UPLOAD_BYTES = 500 * 1024 * 1024

# uploads relayed through this service (POST /api/proxy-upload)
PROXY_CONTENT_TYPES = ALLOWED_CONTENT_TYPES + ("image/x-png",)
MAX_PROXY_UPLOAD_BYTES = 100 * 1024 * 1024

_EXTENSIONS = {
    "video/mp4": ".mp4",
    "video/webm": ".webm",
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/x-png": ".png",
    "image/gif": ".gif",
}

_EXT_RE = re.compile(r"\.[a-zA-Z0-9]+$")


def new_file_id() -> str:
    return uuid.uuid4().hex[:12]


def build_object_key(file_id: str, filename: str, content_type: str) -> str:
    """
    videos/<id><ext> for video/*, images/<id><ext> otherwise.
    The extension comes from the filename, falling back to the content type.
    """
    folder = "videos" if content_type.startswith("video/") else "images"
    match = _EXT_RE.search(filename)
    ext = match.group(0).lower() if match else _EXTENSIONS.get(content_type, "")
    return f"{folder}/{file_id}{ext}"


# -------- CONFIGURATION --------
def _require(name: str) -> str:
    value = os.getenv(name)
    if not value:
        raise RuntimeError(f"{name} not set")
    return value


class StorageConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    bucket: str
    region: str
    endpoint: str
    public_url: str
    access_key_id: str
    secret_access_key: SecretStr

    @classmethod
    def from_env(cls) -> "StorageConfig":
        return cls(
            bucket=_require("B2_BUCKET"),
            region=_require("B2_REGION"),
            endpoint=_require("B2_ENDPOINT"),
            public_url=_require("B2_PUBLIC_URL").rstrip("/"),
            access_key_id=_require("B2_KEY_ID"),
            secret_access_key=_require("B2_APP_KEY"),
        )

    @property
    def credentials(self) -> Credentials:
        return Credentials(
            access_key_id=self.access_key_id,
            secret_access_key=self.secret_access_key,
        )


# -------- PUBLIC API --------
class Storage:
    def __init__(self, config: StorageConfig):
        self.config = config

    def upload_url(self, key: str, content_type: str, expires_in: int = DEFAULT_UPLOAD_EXPIRES) -> str:
        c = self.config
        return sign_put(c.bucket, key, content_type, c.credentials, c.region, c.endpoint, expires_in)

    def download_url(self, key: str, expires_in: int = DEFAULT_DOWNLOAD_EXPIRES) -> str:
        c = self.config
        return sign_get(c.bucket, key, c.credentials, c.region, c.endpoint, expires_in)

    def embed_media_url(self, key: str, expires_in: int = DEFAULT_EMBED_EXPIRES) -> str:
        """Signed GET meant to outlive a typical embed page view."""
        return self.download_url(key, expires_in)

    def public_url(self, key: str) -> str:
        return f"{self.config.public_url}/{key}"

    def upload(self, key: str, data: bytes, content_type: str) -> bool:
        """Relay bytes to the store; same error contract as delete()."""
        c = self.config
        return upload_object(c.bucket, key, data, content_type, c.credentials, c.region, c.endpoint)

    def delete(self, key: str) -> bool:
        """
        Remove an object. Raises StorageUnavailable when the store is
        unreachable; returns False when it answered with an error status.
        """
        c = self.config
        return delete_object(c.bucket, key, c.credentials, c.region, c.endpoint)


_storage_instance: Optional[Storage] = None


def get_storage() -> Storage:
    global _storage_instance
    if _storage_instance is None:
        _storage_instance = Storage(StorageConfig.from_env())
    return _storage_instance
