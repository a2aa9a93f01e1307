"""
Device preferences: view mode, profile picture, welcome screen.

Non-essential state: read failures return defaults and write failures are
logged, never raised.
"""

import json
import logging
from dataclasses import dataclass
from enum import Enum

from binderkeep.storage.errors import StorageError
from binderkeep.storage.key_value import KeyValueStore

logger = logging.getLogger(__name__)

VIEW_MODE_PREFIX = "@binderkeep/viewMode/"
PROFILE_PICTURE_KEY = "@binderkeep/profilePicture"
WELCOME_SEEN_KEY = "@binderkeep/welcome_seen"
LAST_WELCOME_VERSION_KEY = "@binderkeep/last_welcome_version"

# Bump to show the welcome screen again to everyone
WELCOME_APP_VERSION = "1.0.0"


class ViewModeContext(str, Enum):
    BINDER = "binder"
    COLLECTION_LIST = "collectionList"
    SEARCH = "search"


class ViewMode(str, Enum):
    GRID = "grid"
    LIST = "list"


DEFAULT_VIEW_MODE = ViewMode.GRID


@dataclass(frozen=True, slots=True)
class ProfilePicture:
    """Either a built-in sprite (kind="sprite", value=id) or a local image (kind="custom", value=uri)."""

    kind: str
    value: str


def _version_tuple(version: str) -> tuple[int, ...]:
    parts = []
    for part in version.split("."):
        digits = "".join(ch for ch in part if ch.isdigit())
        parts.append(int(digits) if digits else 0)
    return tuple(parts)


class Preferences:
    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    async def _get(self, key: str) -> str | None:
        try:
            return await self._store.get_item(key)
        except StorageError as e:
            logger.warning("Could not read preference %s: %s", key, e)
            return None

    async def _set(self, items: list[tuple[str, str]]) -> None:
        try:
            await self._store.multi_set(items)
        except StorageError as e:
            logger.warning("Could not save preferences %s: %s", [k for k, _ in items], e)

    async def get_view_mode(self, context: ViewModeContext) -> ViewMode:
        # Binders always open in grid mode
        if context == ViewModeContext.BINDER:
            return ViewMode.GRID
        raw = await self._get(VIEW_MODE_PREFIX + context.value)
        try:
            return ViewMode(raw) if raw else DEFAULT_VIEW_MODE
        except ValueError:
            return DEFAULT_VIEW_MODE

    async def set_view_mode(self, context: ViewModeContext, mode: ViewMode) -> None:
        if context == ViewModeContext.BINDER:
            return
        await self._set([(VIEW_MODE_PREFIX + context.value, mode.value)])

    async def get_profile_picture(self) -> ProfilePicture | None:
        raw = await self._get(PROFILE_PICTURE_KEY)
        if not raw:
            return None
        try:
            data = json.loads(raw)
        except ValueError:
            return None
        if not isinstance(data, dict):
            return None
        if data.get("type") == "sprite" and isinstance(data.get("id"), str):
            return ProfilePicture(kind="sprite", value=data["id"])
        if data.get("type") == "custom" and isinstance(data.get("uri"), str):
            return ProfilePicture(kind="custom", value=data["uri"])
        return None

    async def set_profile_picture(self, picture: ProfilePicture) -> None:
        field = "id" if picture.kind == "sprite" else "uri"
        await self._set([(PROFILE_PICTURE_KEY, json.dumps({"type": picture.kind, field: picture.value}))])

    async def should_show_welcome(self) -> bool:
        """True for new users, or when WELCOME_APP_VERSION is newer than the last one seen."""
        if await self._get(WELCOME_SEEN_KEY) != "true":
            return True
        last = await self._get(LAST_WELCOME_VERSION_KEY)
        if last is None:
            return True
        return _version_tuple(last) < _version_tuple(WELCOME_APP_VERSION)

    async def dismiss_welcome(self) -> None:
        await self._set([(WELCOME_SEEN_KEY, "true"), (LAST_WELCOME_VERSION_KEY, WELCOME_APP_VERSION)])
