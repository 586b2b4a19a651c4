"""Disk-backed cache for weather icon images.

Each icon is stored as one PNG file named by its icon code. Failures are logged
and treated as a miss or a no-op; nothing here raises to the caller.
"""

from io import BytesIO
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from weather_lookup.logging_config import get_logger, log_with_context

logger = get_logger(__name__)


class IconDiskCache:
    """Icon bytes keyed by icon code under a single cache directory.

    The directory (including parents) is created on first use. There is no
    expiry and no size bound; entries go away only via ``delete`` or ``clear``.
    """

    def __init__(self, cache_dir: Path):
        self._cache_dir = cache_dir
        self._root_ready = False

    @property
    def cache_dir(self) -> Path:
        return self._cache_dir

    def load(self, key: str) -> bytes | None:
        """Return the cached bytes for ``key``, or None if absent or unreadable."""
        path = self._path_for(key)
        if path is None:
            return None
        try:
            data = path.read_bytes()
        except OSError:
            return None
        log_with_context(logger, "debug", "Icon cache hit", icon_code=key, event_type="icon_cache_hit")
        return data

    def save(self, data: bytes, key: str) -> None:
        """Re-encode ``data`` as PNG and write it under ``key``.

        Silently skips invalid images, an unavailable cache root, or a failed write.
        """
        path = self._path_for(key)
        if path is None:
            return

        try:
            with Image.open(BytesIO(data)) as image:
                image.load()
                buffer = BytesIO()
                image.save(buffer, format="PNG")
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
            log_with_context(
                logger,
                "warning",
                "Icon bytes are not a valid image, not caching",
                icon_code=key,
                error=str(e),
                event_type="icon_cache_invalid_image",
            )
            return

        try:
            path.write_bytes(buffer.getvalue())
        except OSError as e:
            log_with_context(
                logger,
                "warning",
                "Failed to write icon to cache",
                icon_code=key,
                path=str(path),
                error=str(e),
                event_type="icon_cache_write_failed",
            )
            return

        log_with_context(logger, "debug", "Icon cached", icon_code=key, event_type="icon_cache_set")

    def delete(self, key: str) -> None:
        """Remove the entry for ``key`` if present."""
        path = self._path_for(key)
        if path is None:
            return
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            log_with_context(
                logger,
                "warning",
                "Failed to delete cached icon",
                icon_code=key,
                error=str(e),
                event_type="icon_cache_delete_failed",
            )

    def clear(self) -> None:
        """Remove every file under the cache root."""
        if not self._cache_dir.is_dir():
            return

        removed = 0
        for entry in self._cache_dir.iterdir():
            try:
                if entry.is_file() or entry.is_symlink():
                    entry.unlink()
                    removed += 1
            except OSError as e:
                log_with_context(
                    logger,
                    "warning",
                    "Failed to remove cached icon",
                    path=str(entry),
                    error=str(e),
                    event_type="icon_cache_clear_failed",
                )

        log_with_context(logger, "info", "Icon cache cleared", count=removed, event_type="icon_cache_clear_all")

    def _ensure_root(self) -> bool:
        if self._root_ready:
            return True
        try:
            self._cache_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            log_with_context(
                logger,
                "warning",
                "Icon cache directory unavailable",
                path=str(self._cache_dir),
                error=str(e),
                event_type="icon_cache_root_unavailable",
            )
            return False
        self._root_ready = True
        return True

    def _path_for(self, key: str) -> Path | None:
        # Keys become file names; anything that could escape the root is a miss.
        if not key or key in (".", "..") or "/" in key or "\\" in key or "\x00" in key:
            return None
        if not self._ensure_root():
            return None
        return self._cache_dir / key
