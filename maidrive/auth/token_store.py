"""
Bearer token storage.

Two variants share the same contract:
- MemoryTokenStore keeps the token for the process lifetime only
- FileTokenStore persists it as JSON, Fernet-encrypted when a key is configured

A token is handed out only while its expiry lies in the future.
"""

from __future__ import annotations

import json
import os
import shutil
import tempfile
import threading
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from cryptography.fernet import Fernet, InvalidToken

from ..utils.exceptions import TokenStorageError
from ..utils.logger import get_logger

logger = get_logger(__name__)

# Token expiry when the caller does not supply one: fixed 7 days
DEFAULT_TOKEN_TTL = timedelta(days=7)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class PendingRegistration:
    """What the profile step needs to resume after a restart."""
    user_id: Optional[str] = None
    phone_number: Optional[str] = None
    user_type: Optional[str] = None

    @property
    def can_resume(self) -> bool:
        return bool(self.user_id and self.phone_number)


class TokenStore(ABC):
    """Base token store; subclasses provide the raw record storage."""

    def __init__(self, clock: Callable[[], datetime] = _utcnow):
        self._clock = clock
        self._lock = threading.Lock()

    @abstractmethod
    def _read(self) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    def _write(self, record: Dict[str, Any]) -> None:
        ...

    @abstractmethod
    def _delete(self) -> None:
        ...

    def _store(self, record: Dict[str, Any]) -> None:
        # Caller holds self._lock
        try:
            self._write(record)
        except OSError as e:
            logger.error("Failed to write token", error=str(e))
            raise TokenStorageError() from e

    def save(
        self,
        token: str,
        expires_at: Optional[datetime] = None,
        pending_registration: Optional[PendingRegistration] = None,
    ) -> None:
        """
        Store a token, replacing any previous one.

        pending_registration marks a token issued to a user who has not sent
        a profile yet; it stays with the token until mark_registered().

        Raises:
            TokenStorageError: The record could not be written
        """
        if expires_at is None:
            expires_at = self._clock() + DEFAULT_TOKEN_TTL
        expires_at = _as_utc(expires_at)
        record: Dict[str, Any] = {"token": token, "expires_at": expires_at.isoformat()}
        if pending_registration is not None:
            record["pending_registration"] = asdict(pending_registration)
        with self._lock:
            self._store(record)
        logger.debug(
            "Token saved",
            expires_at=expires_at.isoformat(),
            pending_registration=pending_registration is not None,
        )

    def _valid_record(self) -> Optional[Dict[str, Any]]:
        with self._lock:
            record = self._read()
        if not record or not record.get("token"):
            return None

        raw_expiry = record.get("expires_at")
        if raw_expiry:
            try:
                expires_at = _as_utc(datetime.fromisoformat(raw_expiry))
            except (TypeError, ValueError):
                logger.warning("Stored token has an unreadable expiry, ignoring it")
                return None
            if expires_at <= _as_utc(self._clock()):
                logger.debug("Stored token expired", expired_at=expires_at.isoformat())
                return None
        return record

    def get(self) -> Optional[str]:
        """Return the token if present and not expired, else None."""
        record = self._valid_record()
        return record["token"] if record else None

    def pending_registration(self) -> Optional[PendingRegistration]:
        """Registration still owed by the holder of the current valid token, if any."""
        record = self._valid_record()
        if not record:
            return None
        pending = record.get("pending_registration")
        if pending is None:
            return None
        if not isinstance(pending, dict):
            # Flagged but unreadable: still owed, with nothing to resume from
            return PendingRegistration()
        return PendingRegistration(
            user_id=pending.get("user_id") or None,
            phone_number=pending.get("phone_number") or None,
            user_type=pending.get("user_type") or None,
        )

    def mark_registered(self) -> None:
        """Drop the pending-registration marker, keeping token and expiry."""
        with self._lock:
            record = self._read()
            if not record or "pending_registration" not in record:
                return
            record.pop("pending_registration")
            self._store(record)
        logger.debug("Token marked as registered")

    def clear(self) -> None:
        """Remove token and expiry unconditionally."""
        with self._lock:
            try:
                self._delete()
            except OSError as e:
                logger.error("Failed to remove token", error=str(e))
                raise TokenStorageError("Could not remove your sign-in from this device.") from e
        logger.debug("Token cleared")

    def has_valid(self) -> bool:
        return self.get() is not None


class MemoryTokenStore(TokenStore):
    """Token store that forgets everything on restart."""

    def __init__(self, clock: Callable[[], datetime] = _utcnow):
        super().__init__(clock)
        self._record: Optional[Dict[str, Any]] = None

    def _read(self) -> Optional[Dict[str, Any]]:
        return dict(self._record) if self._record else None

    def _write(self, record: Dict[str, Any]) -> None:
        self._record = dict(record)

    def _delete(self) -> None:
        self._record = None


def _atomic_write(path: Path, payload: Dict[str, Any]) -> None:
    """Atomically write JSON to the target path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        mode="w", dir=str(path.parent), delete=False, encoding="utf-8"
    ) as tf:
        json.dump(payload, tf, indent=2, ensure_ascii=False)
        temp_path = Path(tf.name)
    try:
        shutil.move(str(temp_path), str(path))
    except Exception:
        if temp_path.exists():
            temp_path.unlink()
        raise


class FileTokenStore(TokenStore):
    """
    Durable token store backed by a JSON file.

    With a valid Fernet key the record is encrypted at rest. A missing or
    invalid key is not fatal: the store logs a warning and writes a plain
    owner-only file instead.
    """

    def __init__(
        self,
        path: Path,
        key: Optional[str] = None,
        encrypt: bool = True,
        clock: Callable[[], datetime] = _utcnow,
    ):
        super().__init__(clock)
        self.path = Path(path)
        self._fernet = self._init_cipher(key) if encrypt else None

    @property
    def encrypted(self) -> bool:
        return self._fernet is not None

    @staticmethod
    def _init_cipher(key: Optional[str]) -> Optional[Fernet]:
        if not key:
            logger.warning(
                "No token encryption key configured, falling back to plain storage",
                hint="set MAIDRIVE_TOKEN_KEY to a Fernet key",
            )
            return None
        try:
            return Fernet(key.encode("utf-8") if isinstance(key, str) else key)
        except (ValueError, TypeError) as e:
            logger.warning(
                "Invalid token encryption key, falling back to plain storage",
                error=str(e),
            )
            return None

    def _read(self) -> Optional[Dict[str, Any]]:
        if not self.path.exists():
            return None
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Failed to read token file", path=str(self.path), error=str(e))
            return None
        if not isinstance(raw, dict):
            return None

        if not raw.get("encrypted"):
            return raw

        if self._fernet is None:
            logger.warning("Token file is encrypted but no usable key is configured")
            return None
        try:
            plain = self._fernet.decrypt(str(raw.get("payload", "")).encode("utf-8"))
            return json.loads(plain.decode("utf-8"))
        except (InvalidToken, json.JSONDecodeError, UnicodeDecodeError):
            logger.warning("Failed to decrypt token file", path=str(self.path))
            return None

    def _write(self, record: Dict[str, Any]) -> None:
        if self._fernet is not None:
            ciphertext = self._fernet.encrypt(json.dumps(record).encode("utf-8"))
            payload = {"encrypted": True, "payload": ciphertext.decode("utf-8")}
        else:
            payload = {"encrypted": False, **record}
        _atomic_write(self.path, payload)
        try:
            os.chmod(self.path, 0o600)
        except OSError as e:
            # Not supported on every filesystem
            logger.debug("Could not restrict token file permissions", error=str(e))

    def _delete(self) -> None:
        if self.path.exists():
            self.path.unlink()
