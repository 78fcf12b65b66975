"""Key/value application settings (the feed algorithm config lives under 'feed')."""

import json
from typing import Any, Optional

import asyncpg

from database.converters import decode_json, parse_uuid


class SettingsRepositoryDB:

    def __init__(self, pool: asyncpg.Pool):
        self._pool = pool

    async def get_setting(self, key: str) -> Optional[Any]:
        """Decoded JSON value for `key`, or None when unset."""
        async with self._pool.acquire() as conn:
            value = await conn.fetchval(
                "SELECT value FROM app_settings WHERE key = $1", key
            )
        return decode_json(value)

    async def upsert_setting(self, key: str, value: Any, updated_by: Optional[str] = None) -> None:
        async with self._pool.acquire() as conn:
            await conn.execute(
                """INSERT INTO app_settings (key, value, updated_by, updated_at)
                   VALUES ($1, $2::jsonb, $3, NOW())
                   ON CONFLICT (key) DO UPDATE
                   SET value = EXCLUDED.value,
                       updated_by = EXCLUDED.updated_by,
                       updated_at = EXCLUDED.updated_at""",
                key, json.dumps(value), parse_uuid(updated_by),
            )
