import argparse
import sys

from gridfs_web import create_app
from gridfs_web.config import DEFAULT_CONFIG_FILE, load_config
from gridfs_web.db import init_mongo
from gridfs_web.errors import ConfigError, ConnectivityError
from gridfs_web.logger import setup_logging


def fail(message: str, logger=None) -> int:
    # the log may not exist yet, stderr always does
    if logger is not None:
        logger.critical(message)
    print(message, file=sys.stderr)
    return 1


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Serve GridFS files over HTTP")
    parser.add_argument("--config", default=DEFAULT_CONFIG_FILE, help="Config file in JSON format")
    args = parser.parse_args(argv)

    # ====== Config ======
    try:
        config = load_config(args.config)
    except ConfigError as exc:
        return fail(str(exc))

    try:
        logger = setup_logging(config.logfile, config.debug)
    except OSError as exc:
        return fail(f"Cannot open log file {config.logfile!r}: {exc}")

    if not config.servers:
        return fail("No mongodb servers. Please adjust your config file.", logger)

    # ====== Mongo + GridFS ======
    try:
        store = init_mongo(config)
    except (ConfigError, ConnectivityError) as exc:
        return fail(str(exc), logger)

    # ====== HTTP ======
    host, port = config.listen_address
    app = create_app(config, store)
    logger.info("serving %s on %s:%d (lookup by %s)",
                config.handle_path, host, port, config.resolution.value)
    try:
        app.run(host=host, port=port, threaded=True)
    finally:
        store.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
