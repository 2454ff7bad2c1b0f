import html
from typing import Dict, NamedTuple

from http_put_server.errors import TransferError

# Sent with every retrieved file so clients always fetch the current version
CACHE_HEADERS: Dict[str, str] = {
    "Expires": "0",
    "Cache-Control": "must-revalidate, post-check=0, pre-check=0",
    "Pragma": "public",
}


class ErrorPage(NamedTuple):
    status_code: int
    body: str


def render_error(error: TransferError) -> ErrorPage:
    """Map a TransferError to a status code and an HTML body."""
    body = f"<h1>{html.escape(error.message)}</h1>"
    if error.detail:
        body += html.escape(error.detail)
    return ErrorPage(status_code=error.code, body=body)


def created_message(relative_path: str) -> str:
    return f"File {relative_path} created"


def retrieve_headers(size: int) -> Dict[str, str]:
    return {**CACHE_HEADERS, "Content-Length": str(size)}
