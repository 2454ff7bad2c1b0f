import os
from dataclasses import dataclass
from typing import Tuple

from http_put_server.errors import ErrorKind, TransferError


@dataclass(frozen=True)
class ResolvedPath:
    """A client path mapped onto the storage root.

    Attributes:
        absolute_path: Normalized path, always below the storage root
        relative_path: absolute_path without the storage root prefix
        intermediate_dirs: Directories between the root and the file, outermost first
    """
    absolute_path: str
    relative_path: str
    intermediate_dirs: Tuple[str, ...]

    @property
    def directory(self) -> str:
        return os.path.dirname(self.absolute_path)

    @property
    def display_path(self) -> str:
        """Relative path with forward slashes, as clients address it."""
        return "/".join(self.relative_path.split(os.sep))


def normalize_path(path: str, sep: str = os.sep, prefix_root: bool = os.name != "nt") -> str:
    """Resolve '.' and '..' segments without touching the filesystem.

    The target may not exist yet, so os.path.realpath and Path.resolve are
    not an option. '..' at the root is ignored.
    """
    path = path.replace("/", sep).replace("\\", sep)

    segments = []
    for part in path.split(sep):
        if not part or part == ".":
            continue
        if part == "..":
            if segments:
                segments.pop()
        else:
            segments.append(part)

    normalized = sep.join(segments)
    if prefix_root:
        normalized = sep + normalized
    return normalized


def resolve_request_path(storage_root: str, client_path: str, sep: str = os.sep,
                         prefix_root: bool = os.name != "nt") -> ResolvedPath:
    """Map a client-supplied path onto the storage root.

    Args:
        storage_root: Normalized absolute root, without trailing separator
        client_path: Path as sent by the client, e.g. '/a/b/c.txt'

    Raises:
        TransferError: BAD_REQUEST when the path names the root itself or contains NUL,
            FORBIDDEN when it escapes the root
    """
    # The OS rejects NUL in file names with ValueError, not OSError
    if "\x00" in client_path:
        raise TransferError(ErrorKind.BAD_REQUEST, detail="Invalid file name")

    absolute_path = normalize_path(storage_root + sep + client_path, sep, prefix_root)

    if absolute_path == storage_root:
        raise TransferError(ErrorKind.BAD_REQUEST, detail="Missing file name")

    # Checked after normalization, never on the raw input
    root_prefix = storage_root if storage_root.endswith(sep) else storage_root + sep
    if not absolute_path.startswith(root_prefix):
        raise TransferError(ErrorKind.FORBIDDEN)

    relative_path = absolute_path[len(root_prefix):]
    intermediate_dirs = tuple(relative_path.split(sep)[:-1])

    return ResolvedPath(
        absolute_path=absolute_path,
        relative_path=relative_path,
        intermediate_dirs=intermediate_dirs,
    )
