import logging
from dataclasses import dataclass
from typing import NamedTuple

from bson import ObjectId
from gridfs.errors import NoFile
from pymongo.errors import ConnectionFailure, PyMongoError

from ..config import ResolutionMode
from ..errors import ConnectivityError, NotFound, StoreIOError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 4096
DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class RetrievedFile:
    key: str
    content: bytes
    name: str
    content_type: str = DEFAULT_CONTENT_TYPE

    @property
    def size(self) -> int:
        return len(self.content)


class ReadResult(NamedTuple):
    data: bytes
    eof: bool


def lookup_id(key: str):
    """
    ObjectId when the key is a 24-hex id, otherwise the raw string, so that
    buckets keyed by custom string ids still resolve.
    """
    if ObjectId.is_valid(key):
        return ObjectId(key)
    return key


def open_file(fs, key: str, mode: ResolutionMode):
    """
    Opens exactly one GridFS file for the key. Raises NotFound or
    ConnectivityError.
    """
    try:
        if mode is ResolutionMode.BY_IDENTIFIER:
            return fs.get(lookup_id(key))
        return fs.get_last_version(key)
    except NoFile:
        raise NotFound(key) from None
    except ConnectionFailure as exc:
        raise ConnectivityError(key, f"Store unreachable while opening {key!r}: {exc}") from exc
    except PyMongoError as exc:
        raise StoreIOError(key, f"Cannot open {key!r}: {exc}") from exc


def read_chunk(handle, size: int) -> ReadResult:
    """
    One read off the handle. GridOut.read(size) only returns short at the end
    of the file, so a short read carries both the last bytes and EOF.
    """
    data = handle.read(size)
    return ReadResult(data, len(data) < size)


def drain(handle, key: str, chunk_size: int = CHUNK_SIZE) -> bytes:
    buf = bytearray()
    while True:
        try:
            result = read_chunk(handle, chunk_size)
        except (PyMongoError, OSError) as exc:
            raise StoreIOError(key, f"Read failed for {key!r} after {len(buf)} bytes: {exc}") from exc
        # append before the EOF check, the last chunk may arrive with it
        buf += result.data
        if result.eof:
            return bytes(buf)


def stored_content_type(handle) -> str:
    """
    metadata.contentType first, then the legacy top-level contentType field.
    """
    metadata = getattr(handle, "metadata", None) or {}
    return metadata.get("contentType") or getattr(handle, "contentType", None) or DEFAULT_CONTENT_TYPE


def close_file(handle, key: str):
    try:
        handle.close()
    except (PyMongoError, OSError) as exc:
        raise StoreIOError(key, f"Close failed for {key!r}: {exc}") from exc


def retrieve(fs, key: str, mode: ResolutionMode, chunk_size: int = CHUNK_SIZE) -> RetrievedFile:
    """
    Resolves the key with the given mode and reads the whole file into memory.

    The handle is closed exactly once whatever happens. On any failure the
    bytes read so far are dropped and a RetrievalError is raised; partial
    content never reaches the caller.
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")

    handle = open_file(fs, key, mode)
    try:
        name = getattr(handle, "filename", None) or ""
        content_type = stored_content_type(handle)
        content = drain(handle, key, chunk_size)
    except BaseException:
        try:
            close_file(handle, key)
        except StoreIOError as close_exc:
            logger.warning("%s (after failed read)", close_exc)
        raise
    close_file(handle, key)

    return RetrievedFile(key=key, content=content, name=name, content_type=content_type)
