# CONTENTHOST BACKEND

# COMPONENT: SIGV4 PRESIGNED URL SIGNER
# REQUIREMENTS SATISFIED: presigned PUT / GET / DELETE URLs for the B2 S3-compatible API
"""
contenthost/aws/sigv4.py

Implements AWS Signature Version 4 query-string authentication for
S3-compatible object stores (validated against Backblaze B2).

Every public entry point funnels into presign(), a pure transform from a
SigningRequest to a URL string. There is no I/O, no shared mutable state and
no caching: each call derives a fresh date-scoped signing key, so the module
is safe to call from any number of threads at once.

Signing recipe:
    1. amz_date / date_stamp taken from ONE captured timestamp
    2. credential scope  {date_stamp}/{region}/s3/aws4_request
    3. canonical path    /bucket/key, each segment encoded on its own
    4. canonical query   X-Amz-* parameters, sorted by name
    5. canonical headers only "host", lowercased
    6. canonical request hashed with SHA-256
    7. string-to-sign HMAC'd with the kDate -> kRegion -> kService -> kSigning chain
    8. X-Amz-Signature appended after the sorted query block

The payload is always UNSIGNED-PAYLOAD and the only signed header is host.
For PUT, the content type travels with the request metadata but is checked
by the store against the actual Content-Type header, not by the signature.
"""
import hashlib
import hmac
import logging
from datetime import datetime, timezone
from typing import Dict, Literal, Optional, Union
from urllib.parse import quote

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    ValidationError,
    field_validator,
)

from .errors import CryptoFailure, InvalidArgument

logger = logging.getLogger(__name__)

# -------------------------------------------------------------
# Protocol constants
# -------------------------------------------------------------
ALGORITHM = "AWS4-HMAC-SHA256"
SERVICE = "s3"
KEY_PREFIX = "AWS4"
SCOPE_TERMINATOR = "aws4_request"
UNSIGNED_PAYLOAD = "UNSIGNED-PAYLOAD"
SIGNED_HEADERS = "host"
AMZ_DATE_FORMAT = "%Y%m%dT%H%M%SZ"

# Per-operation expiry defaults, in seconds
DEFAULT_UPLOAD_EXPIRES = 3600
DEFAULT_DOWNLOAD_EXPIRES = 1800
DEFAULT_DELETE_EXPIRES = 60
DEFAULT_EMBED_EXPIRES = 21600

# expires_in is only checked for > 0; AWS's own 7 day ceiling is not enforced here

Method = Literal["GET", "PUT", "DELETE"]


# -------------------------------------------------------------
# Request descriptors
# -------------------------------------------------------------
class Credentials(BaseModel):
    """Access key pair. The secret is only ever used as HMAC key material."""

    model_config = ConfigDict(frozen=True)

    access_key_id: str = Field(min_length=1)
    secret_access_key: SecretStr

    @field_validator("access_key_id")
    @classmethod
    def _access_key_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("access_key_id must not be blank")
        return v

    @field_validator("secret_access_key")
    @classmethod
    def _secret_not_empty(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value():
            raise ValueError("secret_access_key must not be empty")
        return v


class SigningRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    method: Method
    host: str = Field(min_length=1)
    bucket: str = Field(min_length=1)
    key: str = Field(min_length=1)
    credentials: Credentials
    region: str = Field(min_length=1)
    expires_in: int = Field(gt=0, strict=True)
    timestamp: datetime
    content_type: Optional[str] = None

    @field_validator("host", "bucket", "region")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v

    @field_validator("host")
    @classmethod
    def _bare_host(cls, v: str) -> str:
        if "://" in v or "/" in v:
            raise ValueError("host must be a bare hostname without scheme or path")
        return v

    @field_validator("bucket")
    @classmethod
    def _single_segment_bucket(cls, v: str) -> str:
        if "/" in v:
            raise ValueError("bucket must not contain '/'")
        return v

    @field_validator("timestamp")
    @classmethod
    def _as_utc(cls, v: datetime) -> datetime:
        # naive datetimes are taken to already be UTC
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)


def _describe(err: ValidationError) -> str:
    """Flatten a pydantic error without echoing the offending input values."""
    parts = []
    for item in err.errors(include_url=False, include_input=False):
        loc = ".".join(str(p) for p in item["loc"]) or "request"
        parts.append(f"{loc}: {item['msg']}")
    return "; ".join(parts)


def build_request(**fields) -> SigningRequest:
    """Construct a SigningRequest, mapping validation errors to InvalidArgument."""
    try:
        return SigningRequest(**fields)
    except ValidationError as e:
        raise InvalidArgument(_describe(e)) from None


# -------------------------------------------------------------
# Canonicalization
# -------------------------------------------------------------
def uri_encode(value: str) -> str:
    # With safe="" quote() leaves only ALPHA / DIGIT / "-._~" as-is, so "/",
    # "!", "'", "(", ")" and "*" all come out as uppercase %XX.
    return quote(value, safe="", encoding="utf-8", errors="strict")


def canonical_path(bucket: str, key: str) -> str:
    """/bucket/key with every '/'-delimited segment encoded independently."""
    segments = [bucket] + key.split("/")
    return "/" + "/".join(uri_encode(segment) for segment in segments)


def canonical_query_string(params: Dict[str, str]) -> str:
    ordered = sorted(params.items(), key=lambda item: item[0].encode("utf-8"))
    return "&".join(f"{uri_encode(name)}={uri_encode(value)}" for name, value in ordered)


def credential_scope(date_stamp: str, region: str) -> str:
    return f"{date_stamp}/{region}/{SERVICE}/{SCOPE_TERMINATOR}"


def canonical_request(method: str, path: str, query: str, host: str) -> str:
    canonical_headers = f"host:{host.lower()}\n"
    return "\n".join(
        [method, path, query, canonical_headers, SIGNED_HEADERS, UNSIGNED_PAYLOAD]
    )


def string_to_sign(amz_date: str, scope: str, creq: str) -> str:
    return "\n".join([ALGORITHM, amz_date, scope, _sha256_hex(creq)])


# -------------------------------------------------------------
# Crypto primitives
# -------------------------------------------------------------
def _sha256_hex(data: str) -> str:
    try:
        digest = hashlib.new("sha256", data.encode("utf-8"))
    except ValueError as e:
        raise CryptoFailure(f"SHA-256 unavailable: {e}") from e
    return digest.hexdigest()


def _hmac_sha256(key: bytes, msg: str) -> bytes:
    try:
        return hmac.new(key, msg.encode("utf-8"), "sha256").digest()
    except ValueError as e:
        raise CryptoFailure(f"HMAC-SHA256 unavailable: {e}") from e


def derive_signing_key(secret_access_key: str, date_stamp: str, region: str) -> bytes:
    """
    kDate -> kRegion -> kService -> kSigning. Every step yields raw bytes
    that key the next HMAC; nothing is hex-encoded until the signature.
    """
    k_date = _hmac_sha256((KEY_PREFIX + secret_access_key).encode("utf-8"), date_stamp)
    k_region = _hmac_sha256(k_date, region)
    k_service = _hmac_sha256(k_region, SERVICE)
    return _hmac_sha256(k_service, SCOPE_TERMINATOR)


# -------------------------------------------------------------
# Signing
# -------------------------------------------------------------
def _presign_path(
    method: str,
    host: str,
    path: str,
    credentials: Credentials,
    region: str,
    expires_in: int,
    timestamp: datetime,
) -> str:
    amz_date = timestamp.strftime(AMZ_DATE_FORMAT)
    date_stamp = amz_date[:8]
    scope = credential_scope(date_stamp, region)

    query = canonical_query_string(
        {
            "X-Amz-Algorithm": ALGORITHM,
            "X-Amz-Credential": f"{credentials.access_key_id}/{scope}",
            "X-Amz-Date": amz_date,
            "X-Amz-Expires": str(expires_in),
            "X-Amz-SignedHeaders": SIGNED_HEADERS,
        }
    )
    creq = canonical_request(method, path, query, host)
    key = derive_signing_key(
        credentials.secret_access_key.get_secret_value(), date_stamp, region
    )
    signature = _hmac_sha256(key, string_to_sign(amz_date, scope, creq)).hex()

    # X-Amz-Signature goes after the sorted block and is never re-sorted
    return f"https://{host}{path}?{query}&X-Amz-Signature={signature}"


def presign(request: SigningRequest) -> str:
    """Produce the presigned URL for a validated SigningRequest."""
    try:
        url = _presign_path(
            request.method,
            request.host,
            canonical_path(request.bucket, request.key),
            request.credentials,
            request.region,
            request.expires_in,
            request.timestamp,
        )
    except UnicodeEncodeError as e:
        raise InvalidArgument(f"request fields must be UTF-8 encodable ({e.reason})") from None

    logger.debug(
        "Presigned %s %s/%s (expires in %ss)",
        request.method,
        request.bucket,
        request.key,
        request.expires_in,
    )
    return url


CredentialsLike = Union[Credentials, Dict[str, str]]


def _sign(
    method: str,
    bucket: str,
    key: str,
    credentials: CredentialsLike,
    region: str,
    endpoint: str,
    expires_in: int,
    now: Optional[datetime],
    content_type: Optional[str] = None,
) -> str:
    # the clock is read exactly once per signature
    timestamp = now if now is not None else datetime.now(timezone.utc)
    request = build_request(
        method=method,
        host=endpoint,
        bucket=bucket,
        key=key,
        credentials=credentials,
        region=region,
        expires_in=expires_in,
        timestamp=timestamp,
        content_type=content_type,
    )
    return presign(request)


def sign_put(
    bucket: str,
    key: str,
    content_type: Optional[str],
    credentials: CredentialsLike,
    region: str,
    endpoint: str,
    expires_in: int = DEFAULT_UPLOAD_EXPIRES,
    now: Optional[datetime] = None,
) -> str:
    """Presigned PUT for a direct browser-to-store upload."""
    return _sign("PUT", bucket, key, credentials, region, endpoint, expires_in, now, content_type)


def sign_get(
    bucket: str,
    key: str,
    credentials: CredentialsLike,
    region: str,
    endpoint: str,
    expires_in: int = DEFAULT_DOWNLOAD_EXPIRES,
    now: Optional[datetime] = None,
) -> str:
    return _sign("GET", bucket, key, credentials, region, endpoint, expires_in, now)


def sign_delete(
    bucket: str,
    key: str,
    credentials: CredentialsLike,
    region: str,
    endpoint: str,
    expires_in: int = DEFAULT_DELETE_EXPIRES,
    now: Optional[datetime] = None,
) -> str:
    return _sign("DELETE", bucket, key, credentials, region, endpoint, expires_in, now)
