"""Language selection, change notification and persistence"""

from __future__ import annotations

import threading
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional

import yaml

from ..utils.logger import get_logger

logger = get_logger(__name__)

LanguageListener = Callable[["Language"], None]


class Language(Enum):
    ENGLISH = ("en", "English", False)
    PERSIAN = ("fa", "فارسی", True)

    def __init__(self, code: str, display_name: str, is_rtl: bool):
        self.code = code
        self.display_name = display_name
        self.is_rtl = is_rtl

    @classmethod
    def from_code(cls, code: Optional[str]) -> "Language":
        """Resolve a language code; unknown codes fall back to Persian."""
        for language in cls:
            if language.code == (code or "").strip().lower():
                return language
        return cls.PERSIAN


DEFAULT_LANGUAGE = Language.PERSIAN


class LanguagePreferences:
    """Stores the selected language code in a small YAML file"""

    def __init__(self, path: Path, default: Language = DEFAULT_LANGUAGE):
        self.path = Path(path)
        self.default = default

    def load(self) -> Language:
        if not self.path.exists():
            return self.default
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning("Failed to read language preference", path=str(self.path), error=str(e))
            return self.default
        if not isinstance(data, dict):
            return self.default
        code = data.get("language")
        return Language.from_code(code) if code else self.default

    def save(self, language: Language) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            yaml.safe_dump({"language": language.code}, f)


class LanguageManager:
    """
    Holds the current language and notifies subscribers when it changes.

    subscribe() returns a callable that removes the subscription, so a
    component can tie the subscription to its own lifetime.
    """

    def __init__(
        self,
        language: Language = DEFAULT_LANGUAGE,
        preferences: Optional[LanguagePreferences] = None,
    ):
        self._preferences = preferences
        self._language = preferences.load() if preferences else language
        self._listeners: List[LanguageListener] = []
        self._lock = threading.Lock()

    @property
    def current(self) -> Language:
        return self._language

    @property
    def is_rtl(self) -> bool:
        return self._language.is_rtl

    def set_language(self, language: Language) -> None:
        with self._lock:
            if language is self._language:
                return
            self._language = language
            listeners = list(self._listeners)

        if self._preferences:
            try:
                self._preferences.save(language)
            except OSError as e:
                logger.warning("Failed to save language preference", error=str(e))
        logger.info("Language changed", language=language.code)

        for listener in listeners:
            listener(language)

    def subscribe(self, listener: LanguageListener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            self.unsubscribe(listener)

        return unsubscribe

    def unsubscribe(self, listener: LanguageListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    @property
    def subscriber_count(self) -> int:
        return len(self._listeners)
