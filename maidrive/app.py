"""Main application wiring"""

from pathlib import Path
from typing import Optional

from .api.auth_client import AuthApiClient
from .auth.session import Route, SessionState
from .auth.token_store import FileTokenStore, MemoryTokenStore, TokenStore
from .auth.workflow import AuthWorkflow
from .i18n.language import Language, LanguageManager, LanguagePreferences
from .utils.config import ConfigManager, Settings
from .utils.logger import get_logger, setup_logger

logger = get_logger(__name__)


def build_token_store(settings: Settings) -> TokenStore:
    storage = settings.storage
    if not storage.persist_token:
        return MemoryTokenStore()
    return FileTokenStore(
        storage.token_path,
        key=storage.token_key,
        encrypt=storage.encrypt_tokens,
    )


class MaiDriveApp:
    """Owns the settings, stores, API client and workflow of one client process"""

    def __init__(self, settings_path: Optional[Path] = None, settings: Optional[Settings] = None):
        self.config_manager = ConfigManager(settings_path)
        self.settings = settings
        self.token_store: Optional[TokenStore] = None
        self.api: Optional[AuthApiClient] = None
        self.session: Optional[SessionState] = None
        self.workflow: Optional[AuthWorkflow] = None
        self.language: Optional[LanguageManager] = None

    def initialize(self) -> "MaiDriveApp":
        """Load configuration and build every component"""
        if self.settings is None:
            self.settings = self.config_manager.load_settings()
        settings = self.settings

        setup_logger(
            log_level=settings.logging.level,
            log_format=settings.logging.format,
            file_path=settings.logging.file_path,
            max_bytes=settings.logging.max_bytes,
            backup_count=settings.logging.backup_count,
        )
        logger.info(
            "Initializing MAi Drive client",
            version=settings.app.version,
            environment=settings.app.environment,
        )

        base_url = settings.api.resolve_base_url()
        self.token_store = build_token_store(settings)
        self.api = AuthApiClient(
            base_url,
            token_store=self.token_store,
            connection_timeout=settings.api.connection_timeout,
            read_timeout=settings.api.read_timeout,
        )
        self.session = SessionState(self.token_store)
        self.workflow = AuthWorkflow(self.api, self.token_store, self.session)
        self.language = LanguageManager(
            preferences=LanguagePreferences(
                settings.storage.language_path,
                default=Language.from_code(settings.i18n.default_language),
            )
        )

        self.workflow.restore()
        logger.info("Client ready", base_url=base_url, route=self.route().value)
        return self

    def route(self) -> Route:
        return self.session.route()

    def logout(self) -> None:
        self.workflow.logout()

    def close(self) -> None:
        if self.api:
            self.api.close()
