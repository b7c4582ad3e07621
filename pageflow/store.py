"""Document persistence.

Stores the canonical content of each document together with its page
size and font size, keyed by a document id. Documents are kept in a JSON
file in an OS-appropriate data directory.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import platformdirs

from .constants import LayoutConstants
from .page_config import get_page_config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredDocument:
    content: str = ""
    page_size: str = LayoutConstants.DEFAULT_PAGE_SIZE
    font_size: float = LayoutConstants.BASE_FONT_SIZE


def validate_record(record: Any) -> bool:
    """Check a raw JSON record before turning it into a StoredDocument."""
    if not isinstance(record, dict):
        return False
    if not isinstance(record.get("content"), str):
        return False
    if get_page_config(record.get("page_size")) is None:
        return False
    font_size = record.get("font_size")
    if isinstance(font_size, bool) or not isinstance(font_size, (int, float)):
        return False
    return LayoutConstants.MIN_FONT_SIZE <= font_size <= LayoutConstants.MAX_FONT_SIZE


class DocumentStore:
    """Manages persistent storage of documents.

    All documents live in one JSON file mapping document ids to records
    with the fields of StoredDocument.
    """

    def __init__(self, data_dir: Optional[Path] = None):
        """Initialize the store.

        Args:
            data_dir: Directory for the store file; defaults to the user
                data directory for pageflow.
        """
        if data_dir is None:
            data_dir = Path(platformdirs.user_data_dir("pageflow"))
        self._data_dir = Path(data_dir)
        self._store_file = self._data_dir / "documents.json"
        self._cache: Optional[Dict[str, Dict[str, Any]]] = None

    @property
    def path(self) -> Path:
        return self._store_file

    def _ensure_data_dir(self) -> None:
        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning(f"Could not create data directory {self._data_dir}: {e}")

    def _load_all(self) -> Dict[str, Dict[str, Any]]:
        """Load all records from disk.

        Returns:
            Mapping of document id to raw record; empty if the file is
            missing or unreadable.
        """
        if self._cache is not None:
            return self._cache

        if not self._store_file.exists():
            self._cache = {}
            return self._cache

        try:
            with open(self._store_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Could not load documents from {self._store_file}: {e}")
            self._cache = {}
            return self._cache

        if not isinstance(data, dict):
            logger.warning("Document store has invalid format (not a dict), ignoring")
            data = {}
        self._cache = data
        return self._cache

    def _save_all(self, records: Dict[str, Dict[str, Any]]) -> bool:
        """Write all records to disk atomically (temp file + rename)."""
        self._ensure_data_dir()
        temp_file = self._store_file.with_suffix('.tmp')
        try:
            with open(temp_file, 'w', encoding='utf-8') as f:
                json.dump(records, f, indent=2)
            temp_file.replace(self._store_file)
        except OSError as e:
            logger.warning(f"Could not save documents to {self._store_file}: {e}")
            try:
                if temp_file.exists():
                    temp_file.unlink()
            except OSError:
                pass
            return False
        self._cache = records
        return True

    def load(self, document_id: str) -> Optional[StoredDocument]:
        """Load a document, or None if it is missing or invalid."""
        record = self._load_all().get(document_id)
        if record is None:
            return None
        if not validate_record(record):
            logger.warning(f"Stored document {document_id!r} is invalid, ignoring")
            return None
        return StoredDocument(
            content=record["content"],
            page_size=record["page_size"],
            font_size=record["font_size"],
        )

    def save(self, document_id: str, document: StoredDocument) -> bool:
        """Save a document, replacing any previous version.

        Returns:
            True if the store file was written.
        """
        if not document_id:
            return False
        records = dict(self._load_all())
        records[document_id] = asdict(document)
        return self._save_all(records)

    def delete(self, document_id: str) -> bool:
        records = dict(self._load_all())
        if records.pop(document_id, None) is None:
            return False
        return self._save_all(records)

    def list_ids(self) -> List[str]:
        return sorted(self._load_all())

    def clear_cache(self) -> None:
        """Forget the in-memory copy; the next access rereads the file."""
        self._cache = None
