import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from models import FeedSettings

logger = logging.getLogger(__name__)

FEED_SETTINGS_KEY = "feed"

SettingsLoader = Callable[[], Awaitable[Optional[Any]]]


class FeedSettingsCache:
    """Process-wide feed settings, owned by the app rather than a module global.

    Readers always get a complete FeedSettings: defaults until something has
    been loaded. Writers replace the whole value; FeedSettings is frozen so a
    cached instance is never partially edited.
    """

    def __init__(self, loader: Optional[SettingsLoader] = None):
        self._loader = loader
        self._value: Optional[FeedSettings] = None
        self._lock = asyncio.Lock()

    def get(self) -> FeedSettings:
        return self._value if self._value is not None else FeedSettings()

    def set(self, settings: FeedSettings) -> None:
        if not isinstance(settings, FeedSettings):
            raise TypeError(f"Expected FeedSettings, got {type(settings).__name__}")
        self._value = settings

    def invalidate(self) -> None:
        self._value = None

    @property
    def is_loaded(self) -> bool:
        return self._value is not None

    async def refresh(self, force: bool = False) -> FeedSettings:
        """Load from the settings store unless already cached.

        A failed load keeps whatever was cached (or defaults) and is logged.
        """
        if self._value is not None and not force:
            return self._value
        if self._loader is None:
            return self.get()
        async with self._lock:
            if self._value is not None and not force:
                return self._value
            try:
                raw = await self._loader()
            except Exception:
                logger.exception("Loading feed settings failed; keeping %s", self.get())
                return self.get()
            if raw is None:
                logger.info("No stored feed settings; using defaults")
            self._value = FeedSettings.model_validate(raw or {})
            return self._value


async def save_feed_settings(db, cache: FeedSettingsCache, raw: Any, updated_by: Optional[str] = None) -> FeedSettings:
    """Normalize, persist under app_settings['feed'], then replace the cached value."""
    settings = raw if isinstance(raw, FeedSettings) else FeedSettings.model_validate(raw or {})
    await db.settings.upsert_setting(FEED_SETTINGS_KEY, settings.to_storage(), updated_by)
    cache.set(settings)
    logger.info(
        "Feed settings updated by %s: mode=%s ratio=%.2f limit=%d",
        updated_by, settings.mode.value, settings.discovery_ratio, settings.feed_limit,
    )
    return settings
