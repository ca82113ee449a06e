"""
Snapshot Store

Persists SceneCollections as JSON snapshot files. Writes go to a temporary
file in the target directory which is flushed, fsynced and then moved over
the snapshot with ``os.replace``, so an interrupted write leaves either the
previous snapshot or none at all, never a truncated one.
"""

import os
import json
import logging
import tempfile
from pathlib import Path
from typing import Union

from stereocrawl.core.exceptions import SnapshotError, ErrorCode
from stereocrawl.models import SceneCollection


logger = logging.getLogger(__name__)


class PostStore:
    """
    Reads and writes snapshot documents of the form ``{"scenes": [...]}``.

    Example:
        store = PostStore()
        store.save(collection, Path("drop/posts.json"))
        assert store.load(Path("drop/posts.json")) == collection
    """

    def __init__(self, indent: int = 2):
        self.indent = indent if indent > 0 else None

    def save(self, collection: SceneCollection, path: Union[str, Path]) -> Path:
        """
        Atomically write a snapshot.

        Args:
            collection: Posts to persist, in order
            path: Snapshot file path; parent directories are created

        Returns:
            The snapshot path

        Raises:
            SnapshotError: If the snapshot cannot be written
        """
        path = Path(path)
        json_str = json.dumps(collection.to_dict(), indent=self.indent, ensure_ascii=False)

        temp_path = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                'w',
                encoding='utf-8',
                dir=path.parent,
                prefix=path.name + '.',
                suffix='.tmp',
                delete=False
            ) as temp_file:
                temp_path = Path(temp_file.name)
                temp_file.write(json_str)
                temp_file.flush()
                os.fsync(temp_file.fileno())

            os.replace(temp_path, path)
            temp_path = None
        except OSError as e:
            raise SnapshotError(
                f"Failed to write snapshot {path}: {e}",
                path=str(path),
                error_code=ErrorCode.FS_PERMISSION_DENIED,
                cause=e
            )
        finally:
            if temp_path is not None:
                try:
                    temp_path.unlink()
                except OSError:
                    logger.warning(f"Could not remove temporary snapshot file {temp_path}")

        logger.debug(f"Saved {len(collection)} post(s) to {path}")
        return path

    def load(self, path: Union[str, Path]) -> SceneCollection:
        """
        Read a snapshot.

        Raises:
            SnapshotError: If the file is missing, not valid JSON, or not a snapshot
        """
        path = Path(path)
        if not path.is_file():
            raise SnapshotError(
                f"Snapshot not found: {path}",
                path=str(path),
                error_code=ErrorCode.FS_FILE_NOT_FOUND
            )

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise SnapshotError(f"Snapshot {path} is not valid JSON: {e}", path=str(path), cause=e)
        except OSError as e:
            raise SnapshotError(
                f"Failed to read snapshot {path}: {e}",
                path=str(path),
                error_code=ErrorCode.FS_PERMISSION_DENIED,
                cause=e
            )

        try:
            collection = SceneCollection.from_dict(data)
        except (KeyError, ValueError, TypeError) as e:
            raise SnapshotError(f"Snapshot {path} has an invalid schema: {e}", path=str(path), cause=e)

        logger.debug(f"Loaded {len(collection)} post(s) from {path}")
        return collection

    def load_or_empty(self, path: Union[str, Path]) -> SceneCollection:
        """Read a snapshot, returning an empty collection when the file does not exist."""
        if not Path(path).exists():
            return SceneCollection()
        return self.load(path)
