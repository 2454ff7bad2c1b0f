from contextlib import asynccontextmanager
from enum import Enum
from typing import Optional, Sequence

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, Response, StreamingResponse
from starlette.background import BackgroundTask

from http_put_server.app.responses import created_message, render_error, retrieve_headers
from http_put_server.app.services.path_resolver import ResolvedPath, resolve_request_path
from http_put_server.app.services.storage_manager import StorageManager
from http_put_server.app.streams import RequestBody
from http_put_server.config import ServerConfig
from http_put_server.errors import ErrorKind, TransferError
from http_put_server.logger_config import setup_logger

# Logger setup
logger = setup_logger()

# Routed to the dispatcher so that unsupported ones get a proper error page
ROUTED_METHODS = ["GET", "PUT", "POST", "DELETE", "PATCH", "HEAD", "OPTIONS"]


class Method(Enum):
    GET = "GET"
    PUT = "PUT"
    POST = "POST"
    UNSUPPORTED = "UNSUPPORTED"

    @classmethod
    def from_name(cls, name: str) -> 'Method':
        try:
            method = cls(name.upper())
        except ValueError:
            return cls.UNSUPPORTED
        return method


def client_path(file_path: str, request: Request) -> str:
    """Pick the path to operate on: the URL path, else the 'url' query parameter."""
    if file_path:
        return "/" + file_path
    return request.query_params.get("url", "")


async def store_file(resolved: ResolvedPath, request: Request) -> Response:
    storage_manager: StorageManager = request.app.state.storage_manager
    logger.info(f"Receiving upload request for {resolved.display_path}")

    body = RequestBody(request.stream, resolved.display_path)
    size = await storage_manager.store(resolved, body)

    logger.info(f"Stored {resolved.display_path} ({size} bytes)")
    return PlainTextResponse(created_message(resolved.display_path), status_code=201)


async def retrieve_file(resolved: ResolvedPath, request: Request) -> Response:
    storage_manager: StorageManager = request.app.state.storage_manager
    logger.info(f"Receiving download request for {resolved.display_path}")

    stored = await storage_manager.open_for_retrieve(resolved)
    logger.debug(f"Serving {resolved.display_path} ({stored.size} bytes)")

    return StreamingResponse(
        stored.iter_chunks(storage_manager.chunk_size),
        media_type="application/octet-stream",
        headers=retrieve_headers(stored.size),
        # Closes the file even if the client leaves before streaming starts
        background=BackgroundTask(stored.close),
    )


async def handle_request(file_path: str, request: Request) -> Response:
    """Resolve the requested path, then dispatch on the HTTP method."""
    config: ServerConfig = request.app.state.config
    resolved = resolve_request_path(config.storage_root, client_path(file_path, request))

    method = Method.from_name(request.method)
    if method is Method.GET:
        return await retrieve_file(resolved, request)
    elif method is Method.PUT or method is Method.POST:
        return await store_file(resolved, request)
    else:
        raise TransferError(ErrorKind.INVALID_METHOD)


async def transfer_error_handler(request: Request, exc: TransferError) -> Response:
    logger.warning(
        f"{request.method} {request.url.path} failed: {exc.code} {exc.kind.name} - {exc.message}"
        + (f" ({exc.detail})" if exc.detail else "")
    )
    page = render_error(exc)
    return HTMLResponse(page.body, status_code=page.status_code)


def create_app(config: ServerConfig) -> FastAPI:
    """Build the application for a validated configuration."""
    storage_manager = StorageManager(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await storage_manager.initialize()
        yield

    app = FastAPI(title="HTTP PUT File Server", lifespan=lifespan)
    app.state.config = config
    app.state.storage_manager = storage_manager

    app.add_exception_handler(TransferError, transfer_error_handler)
    app.add_api_route("/{file_path:path}", handle_request, methods=ROUTED_METHODS)
    return app


def main(argv: Optional[Sequence[str]] = None) -> None:
    config = ServerConfig.from_args(argv)
    logger.info("Starting HTTP PUT File Server...")
    logger.info(f"Storage root: {config.storage_root}")
    uvicorn.run(create_app(config), host=config.host, port=config.port)


if __name__ == "__main__":
    main()
