import logging
from dataclasses import dataclass

import gridfs
from pymongo import MongoClient
from pymongo.errors import PyMongoError
from pymongo.read_preferences import Primary, PrimaryPreferred, SecondaryPreferred

from .config import ConsistencyMode, ServiceConfig
from .errors import ConfigError, ConnectivityError

logger = logging.getLogger(__name__)

# Strong reads always hit the primary, monotonic falls back to a secondary only
# when the primary is gone, eventual is happy with any member.
READ_PREFERENCES = {
    ConsistencyMode.STRONG: Primary(),
    ConsistencyMode.MONOTONIC: PrimaryPreferred(),
    ConsistencyMode.EVENTUAL: SecondaryPreferred(),
}


@dataclass(frozen=True)
class StoreContext:
    """Connection state built once at startup and shared read-only by requests."""

    client: MongoClient
    fs: gridfs.GridFS

    def close(self):
        self.client.close()


def mongo_uri(servers) -> str:
    return "mongodb://" + ",".join(servers)


def init_mongo(config: ServiceConfig) -> StoreContext:
    """
    Connects to the configured servers and opens the GridFS bucket.

    The server is pinged once so that an unreachable deployment fails the
    startup instead of the first request.
    """
    if not config.database:
        raise ConfigError("No database configured")

    if config.mode is not ConsistencyMode.STRONG:
        logger.info("mongo read mode: %s", config.mode.value)

    client = MongoClient(
        mongo_uri(config.servers),
        read_preference=READ_PREFERENCES[config.mode],
    )
    try:
        client.admin.command("ping")
    except PyMongoError as exc:
        client.close()
        raise ConnectivityError("", f"Cannot connect to {', '.join(config.servers)}: {exc}") from exc

    db = client[config.database]
    return StoreContext(client=client, fs=gridfs.GridFS(db, collection=config.collection))
