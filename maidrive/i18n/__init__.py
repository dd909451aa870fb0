"""Language selection"""

from .language import Language, LanguageManager, LanguagePreferences

__all__ = ["Language", "LanguageManager", "LanguagePreferences"]
