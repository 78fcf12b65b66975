from .normalizer import build_round_view, build_round_views
from .service import hydrate_entries, load_feed_page, load_round, load_user_rounds_page
from .settings_cache import FEED_SETTINGS_KEY, FeedSettingsCache, save_feed_settings

__all__ = [
    "build_round_view",
    "build_round_views",
    "hydrate_entries",
    "load_feed_page",
    "load_round",
    "load_user_rounds_page",
    "FEED_SETTINGS_KEY",
    "FeedSettingsCache",
    "save_feed_settings",
]
