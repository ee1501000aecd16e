# CONTENTHOST BACKEND

# COMPONENT: FILE ROUTES
# REQUIREMENTS SATISFIED: direct-to-B2 uploads, metadata registration, listing, signed access, deletion

"""
contenthost/api/routers/files.py

Thin endpoints over the storage service and the metadata repository.

Endpoints (all under /api):
    - POST   /upload-url       : presigned PUT for a browser upload      (auth)
    - POST   /register-upload  : record metadata once the PUT succeeded  (auth)
    - POST   /proxy-upload     : multipart upload relayed to B2          (auth)
    - GET    /list-files       : newest-first listing with search        (auth)
    - GET    /sign-url         : 30 minute presigned GET for one file
    - GET    /get-embed-url    : embed snippet plus a 6 hour media URL
    - DELETE /delete-file      : remove from B2 and from metadata        (auth)

Uploads normally bypass this service: the browser PUTs straight to the
object store with the URL returned by /upload-url, then calls
/register-upload. /proxy-upload is the fallback for buckets without CORS;
it relays at most 100 MiB and registers the file itself.
"""

import os
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile

from contenthost.api.routers.auth import require_session
from contenthost.aws.errors import SigningError, StorageUnavailable
from contenthost.repositories.files_repo import InMemoryFilesRepo, get_files_repo
from contenthost.schemas.files import (
    EmbedUrlResponse,
    FileOut,
    FileRecord,
    ListFilesResponse,
    MessageResponse,
    ProxyUploadResponse,
    RegisterUploadRequest,
    RegisterUploadResponse,
    SignUrlResponse,
    UploadUrlRequest,
    UploadUrlResponse,
)
from contenthost.services.storage import (
    ALLOWED_CONTENT_TYPES,
    MAX_PROXY_UPLOAD_BYTES,
    MAX_UPLOAD_BYTES,
    PROXY_CONTENT_TYPES,
    Storage,
    build_object_key,
    get_storage,
    new_file_id,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["files"])

DEFAULT_EMBED_BASE_URL = "https://contenthosting.org"

# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def storage_service() -> Storage:
    try:
        return get_storage()
    except RuntimeError as e:
        logger.error(f"Storage not configured: {e}")
        raise HTTPException(status_code=500, detail="Storage not configured")


def _embed_base_url() -> str:
    return os.getenv("EMBED_BASE_URL", DEFAULT_EMBED_BASE_URL).rstrip("/")


def _utc_now_iso() -> str:
    # 2024-01-15T10:30:00.000Z
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _lookup(repo: InMemoryFilesRepo, file_id: str) -> FileRecord:
    record = repo.get(file_id)
    if record is None:
        raise HTTPException(status_code=404, detail="File not found")
    return record


# ---------------------------------------------------------------------------
# Upload flow
# ---------------------------------------------------------------------------


@router.post("/upload-url", response_model=UploadUrlResponse)
def create_upload_url(
    req: UploadUrlRequest,
    _token: str = Depends(require_session),
    storage: Storage = Depends(storage_service),
):
    if req.content_type not in ALLOWED_CONTENT_TYPES:
        raise HTTPException(status_code=400, detail="Invalid file type")
    if req.size and req.size > MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=400, detail="File too large (max 500MB)")

    file_id = new_file_id()
    b2_key = build_object_key(file_id, req.filename, req.content_type)

    try:
        upload_url = storage.upload_url(b2_key, req.content_type)
    except SigningError as e:
        logger.error(f"Upload URL signing failed for {b2_key}: {e}")
        raise HTTPException(status_code=500, detail="Failed to generate upload URL")

    logger.info(f"Issued upload URL file_id={file_id} key={b2_key}")
    return UploadUrlResponse(upload_url=upload_url, file_id=file_id, b2_key=b2_key)


@router.post("/register-upload", response_model=RegisterUploadResponse)
def register_upload(
    req: RegisterUploadRequest,
    _token: str = Depends(require_session),
    storage: Storage = Depends(storage_service),
    repo: InMemoryFilesRepo = Depends(get_files_repo),
):
    # Images preview as themselves; videos get no thumbnail
    thumbnail_url = storage.public_url(req.b2_key) if req.content_type.startswith("image/") else None

    record = FileRecord(
        id=req.file_id,
        filename=req.filename,
        type=req.content_type,
        size=req.size,
        upload_date=_utc_now_iso(),
        b2_key=req.b2_key,
        thumbnail_url=thumbnail_url,
        description=req.description or None,
    )
    try:
        repo.create(record)
    except KeyError:
        raise HTTPException(status_code=409, detail="File already registered")

    logger.info(f"Registered upload file_id={record.id} key={record.b2_key}")
    return RegisterUploadResponse(
        file_id=record.id,
        filename=record.filename,
        upload_date=record.upload_date,
    )


@router.post("/proxy-upload", response_model=ProxyUploadResponse)
def proxy_upload(
    file: Optional[UploadFile] = File(None),
    filename: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    _token: str = Depends(require_session),
    storage: Storage = Depends(storage_service),
    repo: InMemoryFilesRepo = Depends(get_files_repo),
):
    """Fallback for browsers that cannot PUT to B2 directly (no bucket CORS)."""
    if file is None:
        raise HTTPException(status_code=400, detail="No file provided")

    content_type = file.content_type or ""
    if content_type not in PROXY_CONTENT_TYPES:
        raise HTTPException(
            status_code=400,
            detail="Invalid file type. Supported: MP4, WebM, JPG, PNG, GIF",
        )

    # one byte past the cap is enough to tell it is too large
    data = file.file.read(MAX_PROXY_UPLOAD_BYTES + 1)
    if len(data) > MAX_PROXY_UPLOAD_BYTES:
        raise HTTPException(
            status_code=400,
            detail="File too large for proxy upload (max 100MB). Use the presigned upload URL instead.",
        )

    name = filename or file.filename or "unnamed"
    file_id = new_file_id()
    b2_key = build_object_key(file_id, name, content_type)

    try:
        stored = storage.upload(b2_key, data, content_type)
    except (StorageUnavailable, SigningError) as e:
        logger.error(f"Proxy upload of {b2_key} failed: {e}")
        raise HTTPException(status_code=500, detail="Upload failed: storage unavailable")
    if not stored:
        raise HTTPException(status_code=500, detail="Upload failed: B2 rejected the upload")

    record = FileRecord(
        id=file_id,
        filename=name,
        type=content_type,
        size=len(data),
        upload_date=_utc_now_iso(),
        b2_key=b2_key,
        thumbnail_url=storage.public_url(b2_key) if content_type.startswith("image/") else None,
        description=description or None,
    )
    repo.create(record)

    logger.info(f"Proxied upload file_id={file_id} key={b2_key} size={len(data)}")
    return ProxyUploadResponse(file_id=file_id, b2_key=b2_key, upload_date=record.upload_date)


# ---------------------------------------------------------------------------
# Listing / access
# ---------------------------------------------------------------------------


@router.get("/list-files", response_model=ListFilesResponse)
def list_files(
    search: str = Query(""),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    _token: str = Depends(require_session),
    storage: Storage = Depends(storage_service),
    repo: InMemoryFilesRepo = Depends(get_files_repo),
):
    rows, total = repo.list(search, limit, offset)
    files = [
        FileOut(
            file_id=r.id,
            filename=r.filename,
            content_type=r.type,
            size=r.size,
            upload_date=r.upload_date,
            b2_key=r.b2_key,
            thumbnail_url=r.thumbnail_url,
            description=r.description,
            media_url=storage.public_url(r.b2_key),
        )
        for r in rows
    ]
    return ListFilesResponse(files=files, total=total, limit=limit, offset=offset)


@router.get("/sign-url", response_model=SignUrlResponse)
def sign_url(
    file_id: str = Query("", alias="fileId"),
    storage: Storage = Depends(storage_service),
    repo: InMemoryFilesRepo = Depends(get_files_repo),
):
    if not file_id:
        raise HTTPException(status_code=400, detail="Missing fileId")
    record = _lookup(repo, file_id)

    try:
        url = storage.download_url(record.b2_key)
    except SigningError as e:
        logger.error(f"Download URL signing failed for {record.b2_key}: {e}")
        raise HTTPException(status_code=500, detail="Failed to generate signed URL")

    return SignUrlResponse(url=url, content_type=record.type, filename=record.filename)


@router.get("/get-embed-url", response_model=EmbedUrlResponse)
def get_embed_url(
    file_id: str = Query("", alias="id"),
    storage: Storage = Depends(storage_service),
    repo: InMemoryFilesRepo = Depends(get_files_repo),
):
    if not file_id:
        raise HTTPException(status_code=400, detail="File ID required")
    record = _lookup(repo, file_id)

    try:
        media_url = storage.embed_media_url(record.b2_key)
    except SigningError as e:
        logger.error(f"Embed URL signing failed for {record.b2_key}: {e}")
        raise HTTPException(status_code=500, detail="Failed to get embed URL")

    embed_url = f"{_embed_base_url()}/embed/{record.id}"
    embed_code = (
        f'<iframe src="{embed_url}" width="100%" height="450" '
        f'frameborder="0" allowfullscreen></iframe>'
    )
    return EmbedUrlResponse(
        file_id=record.id,
        filename=record.filename,
        type=record.type,
        size=record.size,
        upload_date=record.upload_date,
        description=record.description,
        embed_url=embed_url,
        embed_code=embed_code,
        media_url=media_url,
        thumbnail_url=record.thumbnail_url,
    )


# ---------------------------------------------------------------------------
# Deletion
# ---------------------------------------------------------------------------


@router.api_route("/delete-file", methods=["DELETE", "POST"], response_model=MessageResponse)
def delete_file(
    file_id: str = Query("", alias="id"),
    _token: str = Depends(require_session),
    storage: Storage = Depends(storage_service),
    repo: InMemoryFilesRepo = Depends(get_files_repo),
):
    if not file_id:
        raise HTTPException(status_code=400, detail="File ID required")
    record = _lookup(repo, file_id)

    # metadata is removed even when the B2 delete fails
    try:
        if not storage.delete(record.b2_key):
            logger.warning(f"B2 refused delete of {record.b2_key}; removing metadata anyway")
    except StorageUnavailable as e:
        logger.error(f"B2 delete error for {record.b2_key}: {e}")
    except SigningError as e:
        logger.error(f"B2 delete could not be signed for {record.b2_key}: {e}")

    repo.delete(record.id)
    logger.info(f"Deleted file_id={record.id}")
    return MessageResponse(message="File deleted successfully")
