from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from jsonschema import Draft202012Validator

from ._schema import validate_or_raise

# {"host:port": weight} or {"host:port": {"weight": w, "vnodes": n}}
SERVER_MAPPING_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "additionalProperties": {
        "oneOf": [
            {"type": "number", "exclusiveMinimum": 0},
            {
                "type": "object",
                "properties": {
                    "weight": {"type": "number", "exclusiveMinimum": 0},
                    "vnodes": {"type": "integer", "minimum": 0},
                },
                "additionalProperties": False,
            },
        ]
    },
}

_validator = Draft202012Validator(SERVER_MAPPING_SCHEMA)


class ServerSpecError(ValueError):
    pass


@dataclass(frozen=True)
class Server:
    string: str
    host: str
    port: Optional[int] = None
    weight: float = 1


@dataclass(frozen=True)
class Connections:
    servers: List[Server]
    # server string -> custom vnode count (0 = ring default)
    vnodes: Dict[str, int]


ServerSpec = Union[None, str, Server, Mapping[str, Any], Iterable[Union[str, Server]]]


def parse_address(address: str) -> tuple[str, Optional[int]]:
    """Split "host:port" (or "[v6]:port"); the port is optional."""

    if not isinstance(address, str) or not address:
        raise ServerSpecError(f"invalid server address: {address!r}")

    if address.startswith("["):
        end = address.find("]")
        if end == -1:
            raise ServerSpecError(f"unterminated IPv6 address: {address!r}")
        host, rest = address[1:end], address[end + 1:]
        if not rest:
            return host, None
        if not rest.startswith(":"):
            raise ServerSpecError(f"invalid server address: {address!r}")
        port_s = rest[1:]
    elif address.count(":") == 1:
        host, port_s = address.split(":", 1)
    else:
        # bare hostname, or an unbracketed IPv6 literal
        return address, None

    try:
        port = int(port_s)
    except ValueError as e:
        raise ServerSpecError(f"invalid port in server address: {address!r}") from e
    if not 0 <= port <= 65535:
        raise ServerSpecError(f"port out of range in server address: {address!r}")
    return host, port


def make_server(address: str, weight: float = 1) -> Server:
    host, port = parse_address(address)
    return Server(string=address, host=host, port=port, weight=weight)


def validate_server_mapping(obj: Mapping[str, Any]) -> None:
    validate_or_raise(_validator, obj, error=ServerSpecError)


def parse_servers(spec: ServerSpec) -> Connections:
    servers: List[Server] = []
    vnodes: Dict[str, int] = {}

    def push(server: Server, count: int = 0) -> None:
        if server.string in vnodes:
            return
        servers.append(server)
        vnodes[server.string] = count

    if spec is None:
        pass
    elif isinstance(spec, str):
        push(make_server(spec))
    elif isinstance(spec, Server):
        push(spec)
    elif isinstance(spec, Mapping):
        validate_server_mapping(spec)
        for address, value in spec.items():
            if isinstance(value, Mapping):
                server = make_server(address, value.get("weight", 1))
                push(server, int(value.get("vnodes", 0)))
            else:
                push(make_server(address, value))
    else:
        try:
            items = list(spec)
        except TypeError as e:
            raise ServerSpecError(f"unsupported server specification: {type(spec).__name__}") from e
        for item in items:
            if isinstance(item, Server):
                push(item)
            elif isinstance(item, str):
                push(make_server(item))
            else:
                raise ServerSpecError(f"invalid server entry: {item!r}")

    return Connections(servers=servers, vnodes=vnodes)


def rename_server(server: Server, address: str) -> Server:
    """Same weight, new identity."""

    host, port = parse_address(address)
    return replace(server, string=address, host=host, port=port)
