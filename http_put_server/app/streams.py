from typing import AsyncIterator, Callable, Optional

from starlette.requests import ClientDisconnect

from http_put_server.errors import ErrorKind, TransferError


class RequestBody:
    """Sequential reader over an incoming request body.

    Wraps the chunk iterator the ASGI server hands us (chunks of arbitrary
    size) and serves reads of a fixed size, so the copy loop in the storage
    manager sees the same chunking regardless of the client.
    """

    def __init__(self, stream_factory: Callable[[], AsyncIterator[bytes]], relative_path: str = ""):
        self._stream_factory = stream_factory
        self._relative_path = relative_path
        self._stream: Optional[AsyncIterator[bytes]] = None
        self._buffer = bytearray()
        self._exhausted = False
        self._started = False

    def open(self) -> None:
        try:
            self._stream = self._stream_factory().__aiter__()
        except RuntimeError as e:
            raise TransferError(
                ErrorKind.OPEN_FAILED,
                detail=f"Could not create file {self._relative_path}",
            ) from e

    async def read(self, size: int) -> bytes:
        """Return up to size bytes; empty bytes at end of body."""
        if self._stream is None:
            self.open()

        while len(self._buffer) < size and not self._exhausted:
            try:
                chunk = await self._stream.__anext__()
            except StopAsyncIteration:
                self._exhausted = True
                break
            except (ClientDisconnect, RuntimeError) as e:
                # A body that fails before yielding anything was never readable
                if not self._started:
                    raise TransferError(
                        ErrorKind.OPEN_FAILED,
                        detail=f"Could not create file {self._relative_path}",
                    ) from e
                raise TransferError(
                    ErrorKind.WRITE_FAILED,
                    detail=f"Could not write to file {self._relative_path}",
                ) from e
            self._started = True
            self._buffer.extend(chunk)

        data = bytes(self._buffer[:size])
        del self._buffer[:size]
        return data

    async def close(self) -> None:
        stream, self._stream = self._stream, None
        self._buffer.clear()
        aclose = getattr(stream, "aclose", None)
        if aclose is not None:
            await aclose()
