import logging
import re
from urllib.parse import quote

from flask import Blueprint, Response, request

from ..config import ServiceConfig
from ..db import StoreContext
from ..errors import NotFound, RetrievalError
from ..services.retrieval_service import retrieve

logger = logging.getLogger(__name__)

METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


def content_disposition(filename: str) -> str:
    """
    attachment; filename="<name>", plus an RFC 5987 filename* when the name
    is not plain ASCII. Control characters become spaces.
    """
    filename = _CONTROL_CHARS.sub(" ", filename)
    escaped = filename.replace("\\", "\\\\").replace('"', '\\"')
    try:
        escaped.encode("ascii")
    except UnicodeEncodeError:
        fallback = escaped.encode("ascii", "replace").decode("ascii")
        return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename, safe='')}"
    return f'attachment; filename="{escaped}"'


def failure_status(exc: RetrievalError) -> int:
    if isinstance(exc, NotFound):
        return 404
    return 502


def create_files_bp(store: StoreContext, config: ServiceConfig) -> Blueprint:
    """
    Builds the download blueprint. Register it with url_prefix=config.handle_path.
    """
    files_bp = Blueprint("files", __name__)
    prefix = config.handle_path
    mode = config.resolution

    @files_bp.route("/", defaults={"subpath": ""}, methods=METHODS,
                    provide_automatic_options=False)
    @files_bp.route("/<path:subpath>", methods=METHODS, provide_automatic_options=False)
    def get_file(subpath):
        # simple suffix removal on the already-decoded path
        key = request.path[len(prefix):]

        if config.debug:
            logger.debug("%s", key)

        try:
            f = retrieve(store.fs, key, mode)
        except RetrievalError as exc:
            logger.error("%s %s: %s", request.method, request.path, exc)
            if config.strict_status:
                return Response(b"", status=failure_status(exc))
            return Response(b"", status=200, headers={"Content-Disposition": content_disposition("")})

        logger.info("%s %s -> %r (%d bytes)", request.method, request.path, f.name, f.size)
        return Response(f.content,
                        status=200,
                        content_type=f.content_type,
                        headers={"Content-Disposition": content_disposition(f.name)})

    return files_bp
