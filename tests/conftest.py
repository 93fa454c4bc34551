"""Fake GridFS objects shared by the tests."""

import pytest
from bson import ObjectId
from gridfs.errors import NoFile

from gridfs_web import create_app
from gridfs_web.config import ServiceConfig
from gridfs_web.db import StoreContext


class FakeGridOut:
    """Mimics gridfs.GridOut: read(size) only returns short at end of file."""

    def __init__(self, data: bytes, filename=None, content_type=None, metadata=None,
                 fail_after=None, fail_error=None, close_error=None):
        self._data = data
        self._pos = 0
        self.filename = filename
        self.contentType = content_type
        self.metadata = metadata
        self.fail_after = fail_after
        self.fail_error = fail_error or OSError("chunk read failed")
        self.close_error = close_error
        self.close_calls = 0
        self.read_sizes = []

    def read(self, size=-1):
        self.read_sizes.append(size)
        if self.fail_after is not None and self._pos >= self.fail_after:
            raise self.fail_error
        if size < 0:
            size = len(self._data) - self._pos
        chunk = self._data[self._pos:self._pos + size]
        self._pos += len(chunk)
        return chunk

    def close(self):
        self.close_calls += 1
        if self.close_error is not None:
            raise self.close_error


class FakeGridFS:
    """Holds files by _id; filename lookups return the newest upload."""

    def __init__(self):
        self.files = []
        self.opened = []
        self.get_calls = []
        self.version_calls = []
        self.error = None

    def add(self, data: bytes, filename=None, _id=None, content_type=None, **handle_kwargs):
        _id = ObjectId() if _id is None else _id
        self.files.append((_id, filename, data, content_type, handle_kwargs))
        return _id

    def _open(self, entry):
        _id, filename, data, content_type, handle_kwargs = entry
        handle = FakeGridOut(data, filename=filename, content_type=content_type, **handle_kwargs)
        self.opened.append(handle)
        return handle

    def get(self, file_id):
        self.get_calls.append(file_id)
        if self.error is not None:
            raise self.error
        for entry in self.files:
            if entry[0] == file_id:
                return self._open(entry)
        raise NoFile(f"no file with _id {file_id!r}")

    def get_last_version(self, filename=None):
        self.version_calls.append(filename)
        if self.error is not None:
            raise self.error
        for entry in reversed(self.files):
            if entry[1] == filename:
                return self._open(entry)
        raise NoFile(f"no version of {filename!r}")


class FakeClient:
    def __init__(self):
        self.closed = False

    def close(self):
        self.closed = True


@pytest.fixture
def fake_fs():
    return FakeGridFS()


@pytest.fixture
def store(fake_fs):
    return StoreContext(client=FakeClient(), fs=fake_fs)


@pytest.fixture
def make_client(store):
    def _make(**config_kwargs):
        config = ServiceConfig(**config_kwargs)
        app = create_app(config, store)
        app.config["TESTING"] = True
        return app.test_client()
    return _make
