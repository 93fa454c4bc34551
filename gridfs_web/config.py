import enum
import json
import os
from dataclasses import dataclass
from typing import Tuple

from dotenv import load_dotenv

from .errors import ConfigError

load_dotenv()

DEFAULT_CONFIG_FILE = os.getenv("GRIDFS_WEB_CONFIG", "config.json")


class ResolutionMode(enum.Enum):
    BY_IDENTIFIER = "_id"
    BY_FILENAME = "filename"

    @classmethod
    def from_field(cls, field_name: str) -> "ResolutionMode":
        # anything other than "_id" is a filename lookup
        if field_name == "_id":
            return cls.BY_IDENTIFIER
        return cls.BY_FILENAME


class ConsistencyMode(enum.Enum):
    STRONG = "strong"
    MONOTONIC = "monotonic"
    EVENTUAL = "eventual"

    @classmethod
    def parse(cls, value: str) -> "ConsistencyMode":
        if not value:
            return cls.STRONG
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ConfigError(f"Unknown consistency mode: {value!r}") from None


@dataclass(frozen=True)
class ServiceConfig:
    servers: Tuple[str, ...] = ()
    logfile: str = ""
    database: str = ""
    collection: str = "fs"
    field: str = "filename"
    listen: str = ":8080"
    handle_path: str = "/"
    debug: bool = False
    mode: ConsistencyMode = ConsistencyMode.STRONG
    strict_status: bool = False

    @property
    def resolution(self) -> ResolutionMode:
        return ResolutionMode.from_field(self.field)

    @property
    def listen_address(self) -> Tuple[str, int]:
        return parse_listen(self.listen)


# JSON key -> (attribute, expected type)
_FIELDS = {
    "Servers": ("servers", list),
    "Logfile": ("logfile", str),
    "Database": ("database", str),
    "GridFSCollection": ("collection", str),
    "Field": ("field", str),
    "Listen": ("listen", str),
    "HandlePath": ("handle_path", str),
    "Debug": ("debug", bool),
    "Mode": ("mode", str),
    "StrictStatus": ("strict_status", bool),
}


def parse_listen(listen: str) -> Tuple[str, int]:
    """
    Splits "host:port" into its parts. An empty host (":8080") binds every
    interface.
    """
    host, sep, port = (listen or "").rpartition(":")
    if not sep or not port.isdigit():
        raise ConfigError(f"Invalid listen address: {listen!r}")
    port_num = int(port)
    if not 0 < port_num < 65536:
        raise ConfigError(f"Listen port out of range: {listen!r}")
    host = host.strip("[]") or "0.0.0.0"
    return host, port_num


def config_from_dict(raw: dict) -> ServiceConfig:
    if not isinstance(raw, dict):
        raise ConfigError("Config must be a JSON object")

    kwargs = {}
    for key, (attr, expected) in _FIELDS.items():
        if key not in raw or raw[key] is None:
            continue
        value = raw[key]
        if not isinstance(value, expected):
            raise ConfigError(f"Config field {key!r} must be {expected.__name__}")
        kwargs[attr] = value

    servers = kwargs.get("servers", [])
    if not all(isinstance(s, str) for s in servers):
        raise ConfigError("Config field 'Servers' must be a list of strings")
    kwargs["servers"] = tuple(s for s in servers if s)
    kwargs["mode"] = ConsistencyMode.parse(kwargs.get("mode", ""))

    config = ServiceConfig(**kwargs)
    # fail at startup, not on the first request
    parse_listen(config.listen)
    return config


def load_config(path: str) -> ServiceConfig:
    """
    Reads the JSON config file once. Raises ConfigError if it is missing or
    malformed.
    """
    try:
        with open(path, "r", encoding="utf-8") as fh:
            raw = json.load(fh)
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {path!r}: {exc}") from exc
    except ValueError as exc:
        raise ConfigError(f"Config file {path!r} is not valid JSON: {exc}") from exc
    return config_from_dict(raw)
