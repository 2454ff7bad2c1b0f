import pytest

from http_put_server.app.services.path_resolver import normalize_path, resolve_request_path
from http_put_server.errors import ErrorKind, TransferError

ROOT = "/data"


def resolve(client_path):
    return resolve_request_path(ROOT, client_path, sep="/", prefix_root=True)


@pytest.mark.parametrize("path, expected", [
    ("/data/a/b/c.txt", "/data/a/b/c.txt"),
    ("/data//a///b/", "/data/a/b"),
    ("/data/./a/./b", "/data/a/b"),
    ("/data/a/../b", "/data/b"),
    ("\\data\\a\\b.txt", "/data/a/b.txt"),
    ("/../../..", "/"),
    ("", "/"),
])
def test_normalize_path(path, expected):
    assert normalize_path(path, sep="/", prefix_root=True) == expected


def test_normalize_path_without_root_prefix():
    """Windows style paths keep the drive as first segment."""
    assert normalize_path("C:\\data\\a\\..\\b.txt", sep="\\", prefix_root=False) == "C:\\data\\b.txt"


def test_resolve_nested_path():
    resolved = resolve("/a/b/c.txt")
    assert resolved.absolute_path == "/data/a/b/c.txt"
    assert resolved.relative_path == "a/b/c.txt"
    assert resolved.intermediate_dirs == ("a", "b")


def test_resolve_file_at_root_has_no_intermediate_dirs():
    resolved = resolve("/file")
    assert resolved.absolute_path == "/data/file"
    assert resolved.intermediate_dirs == ()


def test_resolve_redundant_and_trailing_separators():
    resolved = resolve("//a//b.txt/")
    assert resolved.absolute_path == "/data/a/b.txt"
    assert resolved.intermediate_dirs == ("a",)


def test_resolve_dot_segments_inside_root():
    resolved = resolve("/a/./x/../b/c.txt")
    assert resolved.absolute_path == "/data/a/b/c.txt"
    assert resolved.intermediate_dirs == ("a", "b")


@pytest.mark.parametrize("client_path", [
    "/../../etc/passwd",
    "/../etc/passwd",
    "/a/../../etc/passwd",
    "/../data2/file",
    "/../data/../../x",
    "..\\..\\etc\\passwd",
])
def test_traversal_outside_root_is_forbidden(client_path):
    with pytest.raises(TransferError) as exc_info:
        resolve(client_path)
    assert exc_info.value.kind is ErrorKind.FORBIDDEN
    assert exc_info.value.code == 403


def test_sibling_with_common_prefix_is_forbidden():
    """'/data2' starts with '/data' but is not below it."""
    with pytest.raises(TransferError) as exc_info:
        resolve("/../data2/secret")
    assert exc_info.value.code == 403


@pytest.mark.parametrize("client_path", [
    "/a/../b",
    "/../data/a",
    "/x/y/z/../../../q",
    "/./a/b/./c",
])
def test_paths_within_root_keep_root_prefix(client_path):
    resolved = resolve(client_path)
    assert resolved.absolute_path.startswith(ROOT + "/")


@pytest.mark.parametrize("client_path", ["", "/", "/.", "/a/..", "//"])
def test_path_naming_the_root_is_bad_request(client_path):
    with pytest.raises(TransferError) as exc_info:
        resolve(client_path)
    assert exc_info.value.kind is ErrorKind.BAD_REQUEST
    assert exc_info.value.code == 400


def test_display_path_uses_forward_slashes():
    resolved = resolve_request_path("/data", "/a/b.txt")
    assert resolved.display_path == "a/b.txt"


@pytest.mark.parametrize("client_path", ["/x\x00y", "/a\x00b/c.txt", "\x00"])
def test_nul_byte_in_path_is_bad_request(client_path):
    with pytest.raises(TransferError) as exc_info:
        resolve(client_path)
    assert exc_info.value.kind is ErrorKind.BAD_REQUEST
    assert exc_info.value.detail == "Invalid file name"
