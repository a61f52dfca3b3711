"""
Path resolution confined to the image root.
"""

import logging
import os
import re
from pathlib import Path, PurePosixPath
from typing import Union

from imageserver.core.errors import InvalidPath, NotFound

logger = logging.getLogger(__name__)

_SEPARATORS = re.compile(r"[\\/]")


def has_parent_segment(relative_path: str) -> bool:
    """Cheap pre-filter: True if any path segment is '..'."""
    return any(segment == ".." for segment in _SEPARATORS.split(relative_path))


def is_within(path: Path, root: Path) -> bool:
    """Component-wise containment check on already resolved paths."""
    try:
        return os.path.commonpath([str(path), str(root)]) == str(root)
    except ValueError:
        # Different drives on Windows
        return False


def resolve_path(
    root: Union[str, Path],
    relative_path: str,
    require_file: bool = False
) -> Path:
    """
    Resolve a request path beneath the image root.

    Symbolic links are followed before the containment check, so a link
    inside the root pointing elsewhere is rejected.

    Args:
        root: Image root directory
        relative_path: Slash-separated path from the request
        require_file: Also require an existing regular file

    Returns:
        Absolute resolved path inside the root

    Raises:
        InvalidPath: Traversal attempt or unresolvable root
        NotFound: require_file is set and no regular file exists
    """
    if not relative_path or "\x00" in relative_path or has_parent_segment(relative_path):
        raise InvalidPath("Invalid filename")

    if PurePosixPath(relative_path).is_absolute() or os.path.isabs(relative_path):
        raise InvalidPath("Invalid filename")

    try:
        resolved_root = Path(root).resolve(strict=True)
    except (OSError, RuntimeError, ValueError) as e:
        logger.error(f"Image root cannot be resolved: {root}: {e}")
        raise InvalidPath("Invalid path")

    try:
        candidate = (resolved_root / relative_path).resolve()
    except (OSError, RuntimeError, ValueError) as e:
        # Symlink loops and NUL bytes end up here
        logger.warning(f"Cannot resolve {relative_path!r}: {e}")
        raise InvalidPath("Invalid path")

    if not is_within(candidate, resolved_root):
        logger.warning(f"Rejected path outside image root: {relative_path!r}")
        raise InvalidPath("Invalid path")

    if require_file and not candidate.is_file():
        raise NotFound(f"Image not found: {relative_path!r}")

    return candidate
