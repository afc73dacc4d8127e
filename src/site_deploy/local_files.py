"""
site_deploy.local_files — Lazy walk of the local build directory.

Keys are the POSIX path relative to the walk root (no leading slash), built
by accumulating the directory prefix through the recursion, so
dist/sub/page.html walked from dist becomes sub/page.html on every platform.

Symlinks are followed for files and directories alike. A directory link
that points back at one of its own ancestors is skipped with a warning.
"""

from __future__ import annotations

import mimetypes
import os
from collections.abc import Iterator
from pathlib import Path, PurePosixPath

from aws_lambda_powertools import Logger

from site_deploy.models import DEFAULT_CONTENT_TYPE, LocalFile

logger = Logger(service="site-deploy")


def guess_content_type(path: str | Path) -> str:
    content_type, _ = mimetypes.guess_type(str(path))
    return content_type or DEFAULT_CONTENT_TYPE


def walk_directory(root: str | Path, prefix: str = "") -> Iterator[LocalFile]:
    """Yield every regular file below root, depth-first, each exactly once.

    Sibling order follows the directory listing and is not guaranteed.
    """
    yield from _walk(root, prefix, frozenset({os.path.realpath(root)}))


def _walk(directory: str | Path, prefix: str, ancestors: frozenset[str]) -> Iterator[LocalFile]:
    with os.scandir(directory) as entries:
        for entry in entries:
            key = str(PurePosixPath(prefix, entry.name)) if prefix else entry.name
            if entry.is_dir():
                real = os.path.realpath(entry.path)
                if real in ancestors:
                    logger.warning("Skipping directory link loop", path=entry.path, target=real)
                    continue
                yield from _walk(entry.path, key, ancestors | {real})
            elif entry.is_file():
                yield LocalFile(
                    path=Path(entry.path),
                    key=key,
                    size=entry.stat().st_size,
                    content_type=guess_content_type(entry.name),
                )
            else:
                logger.warning("Skipping entry that is not a regular file", path=entry.path)
