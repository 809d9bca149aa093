"""Consistent hashing ring (libketama compatible).

Every server is hashed into a number of points on a 32-bit continuum; a key
belongs to the first point at or after its own hash, wrapping around. Adding
or removing one server therefore only moves the keys that fall in that
server's arcs.

Usage:
    ring = HashRing(["10.0.0.1:11211", "10.0.0.2:11211"])
    ring.get("user:42")          # -> "10.0.0.2:11211"
    ring.range("user:42", 2)     # -> both servers, clockwise order
"""

from __future__ import annotations

import logging
import warnings
from bisect import bisect_left
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Union

from .__version__ import __version__
from .cache import LRUCache
from .config import RingOptions
from .digest import DEFAULT_ALGORITHM, Algorithm, check_algorithm, digest, key_bytes
from .hashvalue import pack_digest
from .servers import Server, ServerSpec, parse_address, parse_servers, rename_server

logger = logging.getLogger(__name__)

_MISSING = object()


@dataclass
class Node:
    value: int
    server: str


class HashRing:
    version = __version__

    def __init__(
        self,
        servers: ServerSpec = None,
        algorithm: Algorithm = DEFAULT_ALGORITHM,
        options: Union[RingOptions, Mapping[str, Any], None] = None,
    ) -> None:
        if not isinstance(options, RingOptions):
            options = RingOptions.from_mapping(options)
        check_algorithm(algorithm)

        self.options = options
        self.algorithm = algorithm
        self.vnode = options.vnode_count
        self.replicas = options.effective_replicas

        connections = parse_servers(servers)
        self.servers: List[Server] = connections.servers
        self.vnodes: Dict[str, int] = connections.vnodes

        self.ring: List[Node] = []
        self._values: List[int] = []
        self.cache = LRUCache(options.max_cache_size)

        self.continuum()

    @property
    def size(self) -> int:
        return len(self.ring)

    def digest(self, key: Any) -> bytes:
        return digest(key, self.algorithm)

    def hash_value(self, key: Any) -> int:
        """Position of `key` on the continuum."""
        return pack_digest(self.digest(key))

    def continuum(self) -> "HashRing":
        """Rebuild the points of every server from weights and vnodes."""
        servers = self.servers
        if not servers:
            return self

        total = sum(s.weight for s in servers)
        ring: List[Node] = []

        for server in servers:
            vnodes = self.vnodes.get(server.string) or self.vnode
            if vnodes != self.vnode:
                # explicit per-server count beats the weighted share
                length = vnodes
            else:
                length = int((server.weight * vnodes * len(servers)) // total)

            for i in range(length):
                x = self.digest(f"{server.string}-{i}")
                for j in range(self.replicas):
                    if 4 * j + 4 > len(x):
                        break
                    ring.append(Node(pack_digest(x, 4 * j), server.string))

        ring.sort(key=lambda n: n.value)
        self.ring = ring
        self._values = [n.value for n in ring]
        logger.debug("continuum built: %d servers, %d points", len(servers), len(ring))
        return self

    def find(self, hash_value: int) -> int:
        """Index of the first point at or after `hash_value` (wraps to 0)."""
        idx = bisect_left(self._values, hash_value)
        if idx >= len(self._values):
            return 0
        return idx

    def get(self, key: Any) -> Optional[str]:
        ck = key_bytes(key)
        cached = self.cache.get(ck, _MISSING)
        if cached is not _MISSING:
            return cached

        if not self.ring:
            return None
        server = self.ring[self.find(self.hash_value(key))].server
        self.cache.set(ck, server)
        return server

    # The operations below are not part of ketama; they keep disruption
    # low when the server set changes.

    def range(self, key: Any, size: Optional[int] = None, unique: bool = True) -> List[str]:
        """Up to `size` servers clockwise from the key's position."""
        if not self.ring:
            return []

        size = size or len(self.servers)
        position = self.find(self.hash_value(key))
        found: List[str] = []

        for node in self.ring[position:] + self.ring[:position]:
            if unique and node.server in found:
                continue
            found.append(node.server)
            if len(found) == size:
                break
        return found

    def points(self, servers: Optional[List[str]] = None) -> Dict[str, List[int]]:
        if servers is None:
            servers = list(self.vnodes.keys())
        nodes: Dict[str, List[int]] = {s: [] for s in servers}
        for node in self.ring:
            if node.server in nodes:
                nodes[node.server].append(node.value)
        return nodes

    def swap(self, from_: str, to: str) -> "HashRing":
        """
        Hot-swap one server for another on the existing continuum.

        The points stay where they are, so no key moves. Removing `from_` and
        adding `to` instead would redistribute keys.
        """
        # Raises on a bad address before anything is touched.
        parse_address(to)
        servers = [rename_server(s, to) if s.string == from_ else s for s in self.servers]

        for node in self.ring:
            if node.server == from_:
                node.server = to

        for key, value in self.cache.items():
            if value == from_:
                self.cache.set(key, to)

        if from_ in self.vnodes:
            self.vnodes[to] = self.vnodes.pop(from_)

        self.servers = servers
        logger.debug("swapped %s -> %s", from_, to)
        return self

    def add(self, servers: ServerSpec) -> "HashRing":
        incoming = parse_servers(servers)
        known = {s.string for s in self.servers}

        for server in incoming.servers:
            if server.string in known:
                continue
            known.add(server.string)
            self.servers.append(server)
            self.vnodes[server.string] = incoming.vnodes.get(server.string, 0)

        logger.debug("add: %d servers on ring", len(self.servers))
        self.reset()
        return self.continuum()

    def remove(self, server: ServerSpec) -> "HashRing":
        gone = {s.string for s in parse_servers(server).servers}

        for string in gone:
            self.vnodes.pop(string, None)
        self.servers = [s for s in self.servers if s.string not in gone]

        logger.debug("remove: %s", ", ".join(sorted(gone)))
        self.reset()
        return self.continuum()

    def reset(self) -> "HashRing":
        self.ring = []
        self._values = []
        self.cache.reset()
        return self

    def end(self) -> "HashRing":
        self.reset()
        self.vnodes = {}
        self.servers = []
        return self

    def __len__(self) -> int:
        return self.size

    def __repr__(self) -> str:
        return f"<HashRing: {len(self.servers)} servers, {self.size} points>"


def _deprecated(name: str, to: Optional[str]) -> Any:
    notified = False

    def method(self: HashRing, *args: Any, **kwargs: Any) -> Any:
        nonlocal notified
        if not notified:
            hint = f"use HashRing.{to}" if to else "the API has no replacement"
            msg = f"HashRing.{name} is deprecated; {hint}"
            logger.warning(msg)
            warnings.warn(msg, DeprecationWarning, stacklevel=2)
            notified = True
        if to:
            return getattr(self, to)(*args, **kwargs)
        return None

    method.__name__ = name
    return method


for _name, _to in (
    ("replace_server", None),
    ("replace", None),
    ("remove_server", "remove"),
    ("add_server", "add"),
    ("get_node", "get"),
    ("get_node_position", "find"),
    ("position", "find"),
):
    setattr(HashRing, _name, _deprecated(_name, _to))
