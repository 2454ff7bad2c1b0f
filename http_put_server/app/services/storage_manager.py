import os
import tempfile
from dataclasses import dataclass
from typing import Any, AsyncIterator

import aiofiles
import aiofiles.os

from http_put_server.app.services.path_resolver import ResolvedPath
from http_put_server.config import ServerConfig
from http_put_server.errors import ErrorKind, InitializationError, TransferError
from http_put_server.logger_config import setup_logger

logger = setup_logger()

TEMP_PREFIX = "temp"


@dataclass
class StoredFile:
    """An open stored file, ready to be streamed to a client."""
    handle: Any
    size: int

    async def iter_chunks(self, chunk_size: int) -> AsyncIterator[bytes]:
        try:
            while chunk := await self.handle.read(chunk_size):
                yield chunk
        finally:
            await self.close()

    async def close(self) -> None:
        """Close the handle; safe to call more than once."""
        if not self.handle.closed:
            await self.handle.close()


class StorageManager:
    def __init__(self, config: ServerConfig):
        self.config = config
        self.storage_root = config.storage_root
        self.chunk_size = config.chunk_size

    async def initialize(self):
        """Check the storage root is still usable before serving."""
        logger.info("Initializing storage manager...")
        if not await aiofiles.os.path.isdir(self.storage_root):
            raise InitializationError(f"Storage root {self.storage_root} is not a directory")
        logger.info(f"Storage root: {self.storage_root}")
        logger.debug(f"Transfer chunk size: {self.chunk_size} bytes")

    async def create_dirs(self, resolved: ResolvedPath):
        """Create missing directories between the storage root and the file, outermost first."""
        directory = self.storage_root
        for segment in resolved.intermediate_dirs:
            directory = os.path.join(directory, segment)
            if await aiofiles.os.path.isdir(directory):
                continue
            try:
                await aiofiles.os.mkdir(directory)
                logger.debug(f"Created directory {directory}")
            except FileExistsError:
                # Created by a concurrent request, or a file is in the way
                if not await aiofiles.os.path.isdir(directory):
                    raise self._error(ErrorKind.DIRECTORY_CREATE_FAILED, "Could not create file", resolved)
            except OSError as e:
                logger.error(f"Could not create directory {directory}: {e}")
                raise self._error(ErrorKind.DIRECTORY_CREATE_FAILED, "Could not create file", resolved) from e

    async def store(self, resolved: ResolvedPath, body) -> int:
        """Store a request body at the resolved path.

        The body is copied into a temporary file next to the target, which
        then replaces the target by delete + rename. Readers see either the
        previous file or the complete new one.

        Args:
            resolved: Target location
            body: Object with open(), async read(size) and async close()

        Returns:
            int: Number of bytes stored

        Raises:
            TransferError: On any failure; the temporary file is removed first
        """
        await self.create_dirs(resolved)

        try:
            fd, temp_path = tempfile.mkstemp(prefix=TEMP_PREFIX, dir=resolved.directory)
            os.close(fd)
        except OSError as e:
            logger.error(f"Could not create temporary file in {resolved.directory}: {e}")
            raise TransferError(ErrorKind.TEMP_FILE_FAILED) from e

        temp_file = None
        try:
            try:
                temp_file = await aiofiles.open(temp_path, 'wb')
                body.open()
            except OSError as e:
                raise self._error(ErrorKind.OPEN_FAILED, "Could not create file", resolved) from e

            size = 0
            while chunk := await body.read(self.chunk_size):
                try:
                    written = await temp_file.write(chunk)
                except OSError as e:
                    raise self._error(ErrorKind.WRITE_FAILED, "Could not write to file", resolved) from e
                if written != len(chunk):
                    raise self._error(ErrorKind.WRITE_FAILED, "Could not write to file", resolved)
                size += written

            try:
                await temp_file.close()
            except OSError as e:
                raise self._error(ErrorKind.WRITE_FAILED, "Could not write to file", resolved) from e
            temp_file = None
            await body.close()

            target = resolved.absolute_path
            if await aiofiles.os.path.exists(target):
                try:
                    await aiofiles.os.remove(target)
                except OSError as e:
                    raise self._error(ErrorKind.DELETE_PREVIOUS_FAILED,
                                      "Could not remove previous version of", resolved) from e

            try:
                await aiofiles.os.rename(temp_path, target)
            except OSError as e:
                raise self._error(ErrorKind.RENAME_FAILED, "Could not finish writing file", resolved) from e

        except BaseException:
            await self._cleanup(temp_file, body, temp_path)
            raise

        logger.debug(f"Stored {size} bytes at {target}")
        return size

    async def open_for_retrieve(self, resolved: ResolvedPath) -> StoredFile:
        """Open a stored file for streaming.

        The size comes from the open handle, so it matches the content even
        if a concurrent store replaces the file afterwards.
        """
        path = resolved.absolute_path
        if not await aiofiles.os.path.isfile(path):
            raise self._error(ErrorKind.NOT_FOUND, "Could not find file", resolved)

        try:
            handle = await aiofiles.open(path, 'rb')
        except (FileNotFoundError, IsADirectoryError) as e:
            raise self._error(ErrorKind.NOT_FOUND, "Could not find file", resolved) from e

        size = os.fstat(handle.fileno()).st_size
        return StoredFile(handle=handle, size=size)

    async def _cleanup(self, temp_file, body, temp_path: str):
        """Release everything a failed store opened. Never raises."""
        if temp_file is not None:
            try:
                await temp_file.close()
            except OSError as e:
                logger.warning(f"Could not close temporary file {temp_path}: {e}")
        try:
            await body.close()
        except Exception as e:
            logger.warning(f"Could not close request body: {e}")
        try:
            if await aiofiles.os.path.exists(temp_path):
                await aiofiles.os.remove(temp_path)
                logger.debug(f"Removed temporary file {temp_path}")
        except OSError as e:
            logger.warning(f"Could not remove temporary file {temp_path}: {e}")

    @staticmethod
    def _error(kind: ErrorKind, detail_prefix: str, resolved: ResolvedPath) -> TransferError:
        return TransferError(kind, detail=f"{detail_prefix} {resolved.display_path}")
