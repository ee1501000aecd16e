# CONTENTHOST BACKEND

# COMPONENT: OBJECT STORE NETWORK HELPERS
# REQUIREMENTS SATISFIED: server-side uploads and idempotent deletion through presigned URLs
"""
contenthost/aws/s3_utils.py

Network-facing helpers for the S3-compatible object store.

The signer in sigv4.py never performs I/O. The operations that do live here:
upload_object() and delete_object() sign a URL and issue it with requests.

Key behaviour:
    - upload_object: any 2xx is success, other statuses return False
    - delete_object: 200, 204 and 404 all count as success (the object is
      gone either way), any other status returns False
    - nothing is retried
    - connection errors and timeouts raise StorageUnavailable
    - the signed URL is never logged or placed in an exception message
"""
import logging
from typing import Optional

import requests

from .errors import StorageUnavailable
from .sigv4 import (
    DEFAULT_DELETE_EXPIRES,
    DEFAULT_UPLOAD_EXPIRES,
    CredentialsLike,
    sign_delete,
    sign_put,
)

logger = logging.getLogger(__name__)

# "already absent" is not an error
DELETE_OK_STATUSES = frozenset({200, 204, 404})

DEFAULT_TIMEOUT = 10.0
# bodies of up to 100 MiB travel through upload_object
UPLOAD_TIMEOUT = 120.0


def delete_object(
    bucket: str,
    key: str,
    credentials: CredentialsLike,
    region: str,
    endpoint: str,
    expires_in: int = DEFAULT_DELETE_EXPIRES,
    timeout: float = DEFAULT_TIMEOUT,
    session: Optional[requests.Session] = None,
) -> bool:
    """
    Delete bucket/key from the store.
    Returns True when the object no longer exists, False on any other status.
    """
    url = sign_delete(bucket, key, credentials, region, endpoint, expires_in)
    http = session if session is not None else requests

    try:
        resp = http.delete(url, timeout=timeout)
    except requests.RequestException as e:
        logger.error(f"DELETE {bucket}/{key} did not reach the store: {type(e).__name__}")
        raise StorageUnavailable(
            f"DELETE {bucket}/{key} failed: {type(e).__name__}"
        ) from None

    if resp.status_code in DELETE_OK_STATUSES:
        if resp.status_code == 404:
            logger.info(f"DELETE {bucket}/{key}: object already absent")
        return True

    logger.warning(f"DELETE {bucket}/{key} rejected with status {resp.status_code}")
    return False


def upload_object(
    bucket: str,
    key: str,
    data: bytes,
    content_type: str,
    credentials: CredentialsLike,
    region: str,
    endpoint: str,
    expires_in: int = DEFAULT_UPLOAD_EXPIRES,
    timeout: float = UPLOAD_TIMEOUT,
    session: Optional[requests.Session] = None,
) -> bool:
    """
    PUT data to bucket/key with the given Content-Type.
    Returns True on a 2xx reply, False on any other status.
    """
    url = sign_put(bucket, key, content_type, credentials, region, endpoint, expires_in)
    http = session if session is not None else requests

    try:
        resp = http.put(url, data=data, headers={"Content-Type": content_type}, timeout=timeout)
    except requests.RequestException as e:
        logger.error(f"PUT {bucket}/{key} did not reach the store: {type(e).__name__}")
        raise StorageUnavailable(
            f"PUT {bucket}/{key} failed: {type(e).__name__}"
        ) from None

    if 200 <= resp.status_code < 300:
        logger.info(f"PUT {bucket}/{key}: stored {len(data)} bytes")
        return True

    logger.warning(f"PUT {bucket}/{key} rejected with status {resp.status_code}: {resp.text[:200]}")
    return False
