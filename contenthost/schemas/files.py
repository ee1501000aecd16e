# CONTENTHOST BACKEND

# COMPONENT: API SCHEMAS AND DATA MODELS
# REQUIREMENTS SATISFIED: request validation and camelCase JSON responses
"""
contenthost/schemas/files.py

Pydantic models for the file-hosting API.

Python code uses snake_case attributes; the JSON contract uses camelCase
(fileId, contentType, b2Key, ...), so every API-facing model shares an
alias generator and accepts either spelling on input.

FileRecord is the stored metadata row and keeps the column names of the
files table (type, upload_date, b2_key, ...).
"""
from __future__ import annotations
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ----------------------------------------------------------------------
# Stored metadata
# ----------------------------------------------------------------------
class FileRecord(BaseModel):
    id: str
    filename: str
    type: str
    size: int = 0
    upload_date: str
    b2_key: str
    thumbnail_url: Optional[str] = None
    description: Optional[str] = None


# ----------------------------------------------------------------------
# Auth
# ----------------------------------------------------------------------
class AuthRequest(ApiModel):
    password: str = ""


class AuthResponse(ApiModel):
    success: bool = True
    token: str


# ----------------------------------------------------------------------
# Upload flow
# ----------------------------------------------------------------------
class UploadUrlRequest(ApiModel):
    filename: str = Field(..., min_length=1, examples=["holiday.mp4"])
    content_type: str = Field(..., min_length=1, examples=["video/mp4"])
    size: Optional[int] = Field(None, ge=0)


class UploadUrlResponse(ApiModel):
    upload_url: str
    file_id: str
    b2_key: str = Field(..., alias="b2Key")


class RegisterUploadRequest(ApiModel):
    file_id: str = Field(..., min_length=1)
    filename: str = Field(..., min_length=1)
    content_type: str = Field(..., min_length=1)
    size: int = Field(0, ge=0)
    b2_key: str = Field(..., min_length=1, alias="b2Key")
    description: Optional[str] = None


class RegisterUploadResponse(ApiModel):
    success: bool = True
    file_id: str
    filename: str
    upload_date: str


class ProxyUploadResponse(ApiModel):
    success: bool = True
    file_id: str
    b2_key: str = Field(..., alias="b2Key")
    upload_date: str


# ----------------------------------------------------------------------
# Listing / access
# ----------------------------------------------------------------------
class FileOut(ApiModel):
    file_id: str
    filename: str
    content_type: str
    size: int
    upload_date: str
    b2_key: str = Field(..., alias="b2Key")
    thumbnail_url: Optional[str] = None
    description: Optional[str] = None
    media_url: str


class ListFilesResponse(ApiModel):
    files: List[FileOut]
    total: int
    limit: int
    offset: int


class SignUrlResponse(ApiModel):
    url: str
    content_type: str
    filename: str


class EmbedUrlResponse(ApiModel):
    file_id: str
    filename: str
    type: str
    size: int
    upload_date: str
    description: Optional[str] = None
    embed_url: str
    embed_code: str
    media_url: str
    thumbnail_url: Optional[str] = None


class MessageResponse(ApiModel):
    success: bool = True
    message: str


# Required in some Pydantic v2 setups when using __future__.annotations.
FileRecord.model_rebuild()
AuthRequest.model_rebuild()
AuthResponse.model_rebuild()
UploadUrlRequest.model_rebuild()
UploadUrlResponse.model_rebuild()
RegisterUploadRequest.model_rebuild()
RegisterUploadResponse.model_rebuild()
ProxyUploadResponse.model_rebuild()
FileOut.model_rebuild()
ListFilesResponse.model_rebuild()
SignUrlResponse.model_rebuild()
EmbedUrlResponse.model_rebuild()
MessageResponse.model_rebuild()
