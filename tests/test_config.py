import pytest

from http_put_server.config import CHUNK_SIZE, DEFAULT_PORT, ServerConfig
from http_put_server.errors import ErrorKind, InitializationError


def test_storage_root_is_normalized(tmp_path):
    config = ServerConfig(storage_root=str(tmp_path) + "/./")
    assert config.storage_root == str(tmp_path)
    assert config.port == DEFAULT_PORT
    assert config.chunk_size == CHUNK_SIZE


def test_missing_storage_root(tmp_path):
    with pytest.raises(InitializationError) as exc_info:
        ServerConfig(storage_root=str(tmp_path / "missing"))
    assert exc_info.value.kind is ErrorKind.INITIALIZATION_FAILED
    assert exc_info.value.message == "Could not init server storage"


def test_storage_root_must_be_directory(tmp_path):
    path = tmp_path / "file"
    path.write_text("x")
    with pytest.raises(InitializationError):
        ServerConfig(storage_root=str(path))


def test_empty_storage_root():
    with pytest.raises(InitializationError):
        ServerConfig(storage_root="")


def test_chunk_size_must_be_positive(tmp_path):
    with pytest.raises(InitializationError):
        ServerConfig(storage_root=str(tmp_path), chunk_size=0)


def test_config_is_immutable(tmp_path):
    config = ServerConfig(storage_root=str(tmp_path))
    with pytest.raises(AttributeError):
        config.storage_root = "/elsewhere"


def test_from_options(tmp_path):
    config = ServerConfig.from_options({"storage": str(tmp_path), "chunk_size": 1024})
    assert config.storage_root == str(tmp_path)
    assert config.chunk_size == 1024


def test_from_options_rejects_unknown_keys(tmp_path):
    with pytest.raises(InitializationError) as exc_info:
        ServerConfig.from_options({"storage": str(tmp_path), "quota": 10})
    assert "quota" in exc_info.value.detail


def test_from_options_requires_storage():
    with pytest.raises(InitializationError) as exc_info:
        ServerConfig.from_options({"port": 9000})
    assert "storage" in exc_info.value.detail


def test_from_args(tmp_path):
    config = ServerConfig.from_args([str(tmp_path), "--port", "9000", "--chunk-size", "1024"])
    assert config.storage_root == str(tmp_path)
    assert config.port == 9000
    assert config.chunk_size == 1024


def test_from_args_uses_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("HTTP_PUT_SERVER_STORAGE", str(tmp_path))
    # default is read when the parser is built
    config = ServerConfig.from_args([])
    assert config.storage_root == str(tmp_path)


def test_from_args_requires_storage(monkeypatch):
    monkeypatch.delenv("HTTP_PUT_SERVER_STORAGE", raising=False)
    with pytest.raises(SystemExit):
        ServerConfig.from_args([])
