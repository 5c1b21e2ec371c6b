"""
Lazily constructed handles to the external providers and the store.

ProviderClients builds each handle the first time it is requested and reuses
it afterwards. Construction is guarded by a lock (double-checked), so
concurrent first calls from several threads or tasks share one instance and
the store schema is initialized once per process.
"""

import threading
from collections.abc import Callable
from typing import TypeVar

from vyra.core.config import Config, get_config
from vyra.core.providers import (
    GeminiTextProvider,
    ImageGenerationProvider,
    OpenAIImageProvider,
    TextGenerationProvider,
)
from vyra.logging_config import get_logger
from vyra.storage import DocumentStore, SQLiteDocumentStore
from vyra.utils.exceptions import ConfigurationError

logger = get_logger(__name__)

T = TypeVar("T")


class ProviderClients:
    """Holder for the text provider, image provider and document store.

    Any handle can be supplied up front (tests, alternative backends); the
    rest are built from config on first use.
    """

    def __init__(
        self,
        config: Config | None = None,
        *,
        text_provider: TextGenerationProvider | None = None,
        image_provider: ImageGenerationProvider | None = None,
        store: DocumentStore | None = None,
    ) -> None:
        self.config = config or get_config()
        self._text_provider = text_provider
        self._image_provider = image_provider
        self._store = store
        self._store_ready = False
        self._lock = threading.Lock()

    def _once(self, attr: str, build: Callable[[], T]) -> T:
        value = getattr(self, attr)
        if value is not None:
            return value
        with self._lock:
            value = getattr(self, attr)
            if value is None:
                value = build()
                setattr(self, attr, value)
        return value

    def text_provider(self) -> TextGenerationProvider:
        """Return the secondary (text) provider.

        Raises:
            ConfigurationError: If no Gemini API key is configured
        """

        def build() -> TextGenerationProvider:
            if not self.config.gemini_api_key:
                raise ConfigurationError("Gemini API key is not configured (GEMINI_API_KEY).")
            logger.debug("Creating Gemini client model=%s", self.config.optimization_model)
            return GeminiTextProvider(
                api_key=self.config.gemini_api_key,
                model=self.config.optimization_model,
                base_url=self.config.gemini_base_url,
                debug=self.config.debug_api,
            )

        return self._once("_text_provider", build)

    def image_provider(self) -> ImageGenerationProvider:
        """Return the primary (image) provider.

        Raises:
            ConfigurationError: If no OpenAI API key is configured
        """

        def build() -> ImageGenerationProvider:
            if not self.config.openai_api_key:
                raise ConfigurationError("OpenAI API key is not configured (OPENAI_API_KEY).")
            logger.debug("Creating OpenAI client model=%s", self.config.image_model)
            return OpenAIImageProvider(
                api_key=self.config.openai_api_key,
                model=self.config.image_model,
                base_url=self.config.openai_base_url,
                size=self.config.image_size,
                quality=self.config.image_quality,
                debug=self.config.debug_api,
            )

        return self._once("_image_provider", build)

    def store(self) -> DocumentStore:
        """Return the document store, initializing its schema on first use."""
        store = self._once(
            "_store",
            lambda: SQLiteDocumentStore(
                self.config.database_path,
                busy_timeout=self.config.store_busy_timeout,
                max_attempts=self.config.transaction_max_attempts,
            ),
        )
        if not self._store_ready:
            with self._lock:
                if not self._store_ready:
                    store.initialize()
                    self._store_ready = True
        return store


_default_clients: ProviderClients | None = None
_default_lock = threading.Lock()


def get_clients() -> ProviderClients:
    """Return the process-wide ProviderClients built from get_config()."""
    global _default_clients
    if _default_clients is None:
        with _default_lock:
            if _default_clients is None:
                _default_clients = ProviderClients(get_config())
    return _default_clients


def set_clients(clients: ProviderClients | None) -> None:
    """Replace (or with None, reset) the process-wide ProviderClients."""
    global _default_clients
    with _default_lock:
        _default_clients = clients
