"""
Local card image overrides.

Two namespaces live side by side under the app's private documents
directory: admin overrides (canonical images shipped with an
admin-curated bundle) and user overrides (this device only). Neither is
synced. A file at {root}/{namespace}/{sanitized-id}.jpg is the override;
there is no manifest.
"""

import asyncio
import logging
import re
import shutil
from enum import Enum
from pathlib import Path

logger = logging.getLogger(__name__)

OVERRIDE_SUFFIX = ".jpg"
MAX_FILE_STEM_LENGTH = 120

_PATH_UNSAFE_CHARS = re.compile(r'[/\\?:*"<>|\x00]')


class OverrideNamespace(str, Enum):
    ADMIN = "admin"
    USER = "user"


# Earlier namespaces win
RESOLUTION_ORDER: tuple[OverrideNamespace, ...] = (OverrideNamespace.ADMIN, OverrideNamespace.USER)


def safe_file_stem(card_id: str) -> str:
    """
    Filesystem-safe stem for a card id.

    Path separators and other unsafe characters become "-", and the result
    is capped at MAX_FILE_STEM_LENGTH characters.
    """
    return _PATH_UNSAFE_CHARS.sub("-", card_id)[:MAX_FILE_STEM_LENGTH] or "card"


class ImageOverrideStore:
    """
    File-backed override store.

    When constructed without a documents directory (no private file area,
    e.g. a web context) every operation is a no-op and every lookup returns
    None. File system errors are logged and swallowed.
    """

    def __init__(self, documents_dir: Path | None, root_name: str = "binderkeep-card-overrides") -> None:
        self._root = documents_dir / root_name if documents_dir is not None else None

    @property
    def available(self) -> bool:
        return self._root is not None

    def namespace_dir(self, namespace: OverrideNamespace) -> Path | None:
        if self._root is None:
            return None
        return self._root / namespace.value

    def override_path(self, card_id: str, namespace: OverrideNamespace) -> Path | None:
        """Deterministic path for an override, whether or not it exists."""
        directory = self.namespace_dir(namespace)
        if directory is None:
            return None
        return directory / f"{safe_file_stem(card_id)}{OVERRIDE_SUFFIX}"

    async def get_override(self, card_id: str, namespace: OverrideNamespace) -> Path | None:
        """Path of the override in `namespace` if the file exists."""
        if not card_id:
            return None
        path = self.override_path(card_id, namespace)
        if path is None:
            return None
        try:
            exists = await asyncio.to_thread(path.is_file)
        except OSError as e:
            logger.warning("Could not stat override %s: %s", path, e)
            return None
        return path if exists else None

    async def resolve_best(self, card_id: str) -> Path | None:
        """First existing override in RESOLUTION_ORDER, or None."""
        for namespace in RESOLUTION_ORDER:
            path = await self.get_override(card_id, namespace)
            if path is not None:
                return path
        return None

    async def set_override(
        self, card_id: str, source: Path | str, namespace: OverrideNamespace
    ) -> Path | None:
        """
        Copy `source` into `namespace` as the override for `card_id`.

        Returns the destination path, or None if unavailable or the copy failed.
        """
        destination = self.override_path(card_id, namespace)
        if destination is None:
            return None
        try:
            await asyncio.to_thread(_copy_into_place, Path(source), destination)
        except OSError as e:
            logger.warning("Could not save %s override for %s: %s", namespace.value, card_id, e)
            return None
        logger.info("Saved %s override for %s", namespace.value, card_id)
        return destination

    async def remove_override(self, card_id: str, namespace: OverrideNamespace) -> None:
        """Delete an override. Removing a missing override is not an error."""
        path = self.override_path(card_id, namespace)
        if path is None:
            return
        try:
            await asyncio.to_thread(path.unlink, missing_ok=True)
        except OSError as e:
            logger.warning("Could not remove override %s: %s", path, e)

    async def list_overrides(self, namespace: OverrideNamespace) -> list[str]:
        """Sanitized card ids that have an override in `namespace`."""
        directory = self.namespace_dir(namespace)
        if directory is None:
            return []
        try:
            return await asyncio.to_thread(_list_stems, directory)
        except OSError as e:
            logger.warning("Could not list overrides in %s: %s", directory, e)
            return []


def _copy_into_place(source: Path, destination: Path) -> None:
    destination.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(source, destination)


def _list_stems(directory: Path) -> list[str]:
    if not directory.is_dir():
        return []
    return sorted(
        p.name[: -len(OVERRIDE_SUFFIX)]
        for p in directory.iterdir()
        if p.name.endswith(OVERRIDE_SUFFIX) and p.is_file()
    )
