# CONTENTHOST BACKEND

# COMPONENT: IN-MEMORY FILE METADATA REPOSITORY
# REQUIREMENTS SATISFIED: file metadata persistence abstraction for the API layer
"""
contenthost/repositories/files_repo.py

Defines an in-memory repository for uploaded-file metadata.

Key responsibilities:
    - Create, retrieve and delete FileRecord rows by id
    - List rows newest-first with case-insensitive filename search
    - Offset/limit pagination with a total count for the search
    - Fast reset and count operations for testing

The repository is deliberately simple and deterministic. A relational or
key-value backed implementation only has to provide the same methods.
"""
from __future__ import annotations
from typing import Optional, Dict, List, Tuple
import threading

from contenthost.schemas.files import FileRecord


class InMemoryFilesRepo:
    def __init__(self):
        self._store: Dict[str, FileRecord] = {}
        self._lock = threading.Lock()

    def create(self, record: FileRecord) -> FileRecord:
        with self._lock:
            if record.id in self._store:
                raise KeyError(f"file {record.id} already registered")
            self._store[record.id] = record
        return record

    def get(self, file_id: str) -> Optional[FileRecord]:
        with self._lock:
            return self._store.get(file_id)

    def delete(self, file_id: str) -> bool:
        with self._lock:
            return self._store.pop(file_id, None) is not None

    def list(self, search: Optional[str], limit: int, offset: int) -> Tuple[List[FileRecord], int]:
        needle = (search or "").lower()
        with self._lock:
            rows = [r for r in self._store.values() if needle in r.filename.lower()]
        # ISO-8601 upload dates sort chronologically as strings
        rows.sort(key=lambda r: r.upload_date, reverse=True)
        return rows[offset:offset + limit], len(rows)

    def reset(self):
        with self._lock:
            self._store.clear()

    def count(self) -> int:
        with self._lock:
            return len(self._store)


_repo_instance = InMemoryFilesRepo()


def get_files_repo() -> InMemoryFilesRepo:
    return _repo_instance
