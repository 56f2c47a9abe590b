"""
Global store settings document.
"""

from typing import Any, Dict

from ..models.setting import DEFAULT_SETTINGS, SETTINGS_KEY
from .database import DatabaseService, now_ts


async def load_settings(db: DatabaseService) -> Dict[str, Any]:
    """Current settings merged over the defaults."""
    row = await db.fetch_one("SELECT * FROM settings WHERE config_key = ?", (SETTINGS_KEY,))
    result = dict(DEFAULT_SETTINGS)
    if row:
        for key in DEFAULT_SETTINGS:
            if row.get(key) is not None:
                result[key] = row[key]
        result["is_announcement_active"] = bool(result["is_announcement_active"])
    return result


async def save_settings(db: DatabaseService, changes: Dict[str, Any]) -> Dict[str, Any]:
    """Upserts the settings document with already validated fields."""
    data = dict(changes)
    if "is_announcement_active" in data:
        data["is_announcement_active"] = 1 if data["is_announcement_active"] else 0

    exists = await db.fetch_value("SELECT id FROM settings WHERE config_key = ?", (SETTINGS_KEY,))
    if exists:
        if data:
            data["updated_at"] = now_ts()
            await db.update("settings", data, "config_key = ?", (SETTINGS_KEY,))
    else:
        await db.insert("settings", {"config_key": SETTINGS_KEY, **data})
    return await load_settings(db)
