"""Configuration settings for the HTTP PUT/GET file server."""
import argparse
import os
from dataclasses import dataclass, fields
from typing import Any, Mapping, Optional, Sequence

from http_put_server.app.services.path_resolver import normalize_path
from http_put_server.errors import InitializationError

# Server
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8000

# Transfer
CHUNK_SIZE = 8192  # 8KB chunks

# Directory paths
LOG_DIR = "logs"

# Environment fallback for the storage root
STORAGE_ENV_VAR = "HTTP_PUT_SERVER_STORAGE"


@dataclass(frozen=True)
class ServerConfig:
    """Immutable server configuration, validated on construction.

    Args:
        storage_root: Existing, writable directory all files are stored under
        host: Interface to bind
        port: Port to bind
        chunk_size: Bytes copied per read/write when transferring files
    """
    storage_root: str
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    chunk_size: int = CHUNK_SIZE

    def __post_init__(self):
        if not self.storage_root:
            raise InitializationError("Storage root is not configured")

        root = normalize_path(os.path.abspath(os.fspath(self.storage_root)))
        if not os.path.isdir(root):
            raise InitializationError(f"Storage root {root} is not a directory")
        if not os.access(root, os.W_OK | os.X_OK):
            raise InitializationError(f"Storage root {root} is not writable")
        if self.chunk_size <= 0:
            raise InitializationError("Chunk size must be positive")

        object.__setattr__(self, "storage_root", root)

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> 'ServerConfig':
        """Create a config from an options mapping.

        'storage' is required; the other keys match the field names.
        Unknown keys are rejected.
        """
        allowed = {f.name for f in fields(cls) if f.name != "storage_root"} | {"storage"}
        unknown = sorted(set(options) - allowed)
        if unknown:
            raise InitializationError(f"Unknown options: {', '.join(unknown)}")
        if "storage" not in options:
            raise InitializationError("Missing required option: storage")

        kwargs = {k: v for k, v in options.items() if k != "storage"}
        return cls(storage_root=options["storage"], **kwargs)

    @classmethod
    def from_args(cls, argv: Optional[Sequence[str]] = None) -> 'ServerConfig':
        """Create a config from command line arguments."""
        parser = argparse.ArgumentParser(description='HTTP file server: PUT/POST to store, GET to retrieve')
        parser.add_argument('storage', nargs='?', default=os.environ.get(STORAGE_ENV_VAR),
                            help=f'Absolute path of the storage directory (default: ${STORAGE_ENV_VAR})')
        parser.add_argument('--host', type=str, default=DEFAULT_HOST,
                            help='Interface to bind')
        parser.add_argument('--port', type=int, default=DEFAULT_PORT,
                            help='Port to bind')
        parser.add_argument('--chunk-size', type=int, default=CHUNK_SIZE,
                            help='Bytes per read/write when transferring files')
        args = parser.parse_args(argv)

        if not args.storage:
            parser.error(f'storage is required (argument or ${STORAGE_ENV_VAR})')

        return cls(
            storage_root=args.storage,
            host=args.host,
            port=args.port,
            chunk_size=args.chunk_size,
        )
