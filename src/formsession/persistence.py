"""
Persistence Manager: local, per-form snapshots of an in-progress session.

A snapshot is written under a key derived from the form id:

    {name, email, role, currentSection: int,
     answers: [[question_id, answer_record], ...],
     savedAt: ISO-8601 string}

Snapshots older than the freshness window (24 hours by default) are
never returned and are erased on load. A snapshot that cannot be decoded
is erased as well; the failure is logged and reported through
`last_restore_failed`, never raised.

The storage itself is injected (`StorageBackend`) so tests run against
`MemoryStorage` and scripts against `FileStorage`.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple
from urllib.parse import quote

from formsession.answers import parse_iso_datetime
from formsession.config import Settings, get_settings
from formsession.errors import RestoreError
from formsession.model import RespondentInfo
from formsession.store import AnswerStore

logger = logging.getLogger(__name__)

SNAPSHOT_KEY_PREFIX = "likert-form-progress-"
DEFAULT_MAX_AGE = timedelta(hours=24)


def snapshot_key(form_id: str) -> str:
    return f"{SNAPSHOT_KEY_PREFIX}{form_id}"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    text = moment.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return text.replace("+00:00", "Z")


class StorageBackend(ABC):
    """Durable string key-value storage, scoped to one origin/user."""

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def remove_item(self, key: str) -> None:
        ...


class MemoryStorage(StorageBackend):
    """In-process storage, used by tests and throwaway sessions."""

    def __init__(self, items: Optional[Dict[str, str]] = None):
        self.items: Dict[str, str] = dict(items or {})

    def get_item(self, key: str) -> Optional[str]:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.items[key] = value

    def remove_item(self, key: str) -> None:
        self.items.pop(key, None)


class FileStorage(StorageBackend):
    """One file per key under a directory. Writes replace files atomically."""

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{quote(key, safe='-_.')}.json"

    def get_item(self, key: str) -> Optional[str]:
        try:
            return self._path(key).read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def set_item(self, key: str, value: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(value)
            os.replace(tmp, self._path(key))
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def remove_item(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


@dataclass
class Session:
    """
    In-progress state of one respondent filling one form.

    position:
        -1 for the personal-information page, otherwise the section index
    """

    respondent: RespondentInfo
    store: AnswerStore
    position: int = -1
    saved_at: Optional[datetime] = None

    def has_data(self) -> bool:
        return self.respondent.has_data() or self.store.has_data()


@dataclass
class Snapshot:
    """Decoded contents of a stored snapshot."""

    respondent: RespondentInfo
    position: int
    answers: List[Tuple[str, Any]] = field(default_factory=list)
    saved_at: Optional[datetime] = None

    def has_data(self) -> bool:
        return self.respondent.has_data() or len(self.answers) > 0


def snapshot_to_dict(session: Session, saved_at: datetime) -> Dict[str, Any]:
    return {
        "name": session.respondent.name,
        "email": session.respondent.email,
        "role": session.respondent.role,
        "currentSection": session.position,
        "answers": [[qid, record] for qid, record in session.store.to_persistable()],
        "savedAt": format_timestamp(saved_at),
    }


def _text(d: Dict[str, Any], key: str) -> str:
    value = d.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise RestoreError(detail=f"{key} is not a string: {value!r}")
    return value


def snapshot_from_dict(d: Any) -> Snapshot:
    """
    Raises:
        RestoreError: If the document is not a snapshot
    """
    if not isinstance(d, dict):
        raise RestoreError(detail="snapshot is not an object")
    saved_raw = d.get("savedAt")
    if not isinstance(saved_raw, str):
        raise RestoreError(detail="snapshot has no savedAt")
    try:
        saved_at = parse_iso_datetime(saved_raw)
    except ValueError as exc:
        raise RestoreError(detail=str(exc)) from exc
    if saved_at.tzinfo is None:
        saved_at = saved_at.replace(tzinfo=timezone.utc)

    position = d.get("currentSection", -1)
    if position is None:
        position = -1
    if isinstance(position, bool) or not isinstance(position, int):
        raise RestoreError(detail=f"currentSection is not an integer: {position!r}")

    answers = d.get("answers") or []
    if not isinstance(answers, list):
        raise RestoreError(detail="answers is not a list")

    return Snapshot(
        respondent=RespondentInfo(name=_text(d, "name"), email=_text(d, "email"), role=_text(d, "role")),
        position=position,
        answers=[tuple(pair) for pair in answers if isinstance(pair, (list, tuple)) and len(pair) == 2],
        saved_at=saved_at,
    )


class PersistenceManager:
    """Save, load and clear per-form snapshots with a freshness window."""

    def __init__(self, storage: StorageBackend, max_age: timedelta = DEFAULT_MAX_AGE,
                 clock: Callable[[], datetime] = utc_now):
        self.storage = storage
        self.max_age = max_age
        self.clock = clock
        self.last_restore_failed = False

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "PersistenceManager":
        """File-backed manager using the configured directory and freshness window."""
        settings = settings or get_settings()
        return cls(FileStorage(settings.storage_dir),
                   max_age=timedelta(hours=settings.snapshot_max_age_hours))

    def save(self, form_id: str, session: Session) -> bool:
        """
        Write a snapshot of the session.

        Sessions without any respondent-entered data are not written.

        Returns:
            True when a snapshot was written
        """
        if not session.has_data():
            return False
        saved_at = self.clock()
        document = snapshot_to_dict(session, saved_at)
        self.storage.set_item(snapshot_key(form_id), json.dumps(document))
        session.saved_at = saved_at
        logger.debug("Saved progress for form %s at position %s", form_id, session.position)
        return True

    def load(self, form_id: str) -> Optional[Snapshot]:
        """
        Read the snapshot for a form if it is fresh and decodable.

        Stale and corrupt snapshots are erased and reported as absent.
        """
        self.last_restore_failed = False
        key = snapshot_key(form_id)
        raw = self.storage.get_item(key)
        if raw is None:
            return None
        try:
            snapshot = snapshot_from_dict(json.loads(raw))
        except (ValueError, RestoreError) as exc:
            logger.warning("Failed to restore saved progress for form %s: %s",
                           form_id, getattr(exc, "detail", None) or exc)
            self.last_restore_failed = True
            self.storage.remove_item(key)
            return None

        age = self.clock() - snapshot.saved_at
        if age >= self.max_age:
            logger.info("Discarding saved progress for form %s (%s old)", form_id, age)
            self.storage.remove_item(key)
            return None
        return snapshot

    def clear(self, form_id: str) -> None:
        self.storage.remove_item(snapshot_key(form_id))


class SaveIndicator:
    """
    "Saving..." / "Saved" status shown next to the form title.

    Every save shows "saving" for at least `min_duration` seconds so the
    indicator does not flicker; afterwards it shows "saved".
    """

    def __init__(self, min_duration: float = 0.25, clock: Callable[[], float] = time.monotonic):
        self.min_duration = min_duration
        self.clock = clock
        self._saving_until: Optional[float] = None
        self._saved_at: Optional[float] = None

    def mark_saved(self) -> None:
        now = self.clock()
        self._saving_until = now + self.min_duration
        self._saved_at = now

    def status(self) -> str:
        if self._saved_at is None:
            return "idle"
        if self._saving_until is not None and self.clock() < self._saving_until:
            return "saving"
        return "saved"

    def reset(self) -> None:
        self._saving_until = None
        self._saved_at = None
