"""Ring options.

libketama places 160 points per server (40 hashes x 4 replicas); the python
`hash_ring` module uses 120 (40 x 3). That replica count is the only
difference between the two, and `compatibility` selects it.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Any, Dict, Mapping, Optional

from jsonschema import Draft202012Validator

from ._schema import validate_or_raise

DEFAULT_VNODE_COUNT = 40
DEFAULT_REPLICAS = 4
DEFAULT_MAX_CACHE_SIZE = 5000

COMPAT_KETAMA = "ketama"
COMPAT_HASH_RING = "hash_ring"

ENV_VNODE_COUNT = "HASHRING_VNODE_COUNT"
ENV_REPLICAS = "HASHRING_REPLICAS"
ENV_COMPATIBILITY = "HASHRING_COMPATIBILITY"
ENV_MAX_CACHE_SIZE = "HASHRING_MAX_CACHE_SIZE"

# Historic option names are spelled with spaces.
_ALIASES = {
    "vnode count": "vnode_count",
    "max cache size": "max_cache_size",
}

OPTIONS_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "properties": {
        "vnode_count": {"type": "integer", "minimum": 1},
        "replicas": {"type": "integer", "minimum": 1},
        "compatibility": {"enum": [None, COMPAT_KETAMA, COMPAT_HASH_RING]},
        "max_cache_size": {"type": "integer", "minimum": 1},
    },
    "additionalProperties": False,
}

_validator = Draft202012Validator(OPTIONS_SCHEMA)


class ConfigError(ValueError):
    pass


def validate_options(obj: Mapping[str, Any]) -> None:
    validate_or_raise(_validator, obj, error=ConfigError)


@dataclass(frozen=True)
class RingOptions:
    vnode_count: int = DEFAULT_VNODE_COUNT
    replicas: int = DEFAULT_REPLICAS
    compatibility: Optional[str] = None
    max_cache_size: int = DEFAULT_MAX_CACHE_SIZE

    def __post_init__(self) -> None:
        validate_options(self.to_dict())

    @property
    def effective_replicas(self) -> int:
        """Points per hashed vnode; `compatibility` wins over `replicas`."""
        if self.compatibility:
            return 3 if self.compatibility == COMPAT_HASH_RING else 4
        return self.replicas

    def to_dict(self) -> Dict[str, Any]:
        return {
            "vnode_count": self.vnode_count,
            "replicas": self.replicas,
            "compatibility": self.compatibility,
            "max_cache_size": self.max_cache_size,
        }

    @staticmethod
    def from_mapping(mapping: Optional[Mapping[str, Any]]) -> "RingOptions":
        if not mapping:
            return RingOptions()
        normalized: Dict[str, Any] = {}
        for key, value in mapping.items():
            normalized[_ALIASES.get(key, key)] = value
        validate_options(normalized)
        return RingOptions(**normalized)

    @staticmethod
    def from_env(
        base: Optional["RingOptions"] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "RingOptions":
        """
        Overlay HASHRING_* environment variables onto `base`.

        Empty values are ignored. Integers that do not parse => ConfigError.
        """
        env = os.environ if environ is None else environ
        opts = base or RingOptions()
        changes: Dict[str, Any] = {}

        for var, field in (
            (ENV_VNODE_COUNT, "vnode_count"),
            (ENV_REPLICAS, "replicas"),
            (ENV_MAX_CACHE_SIZE, "max_cache_size"),
        ):
            v = env.get(var, "").strip()
            if not v:
                continue
            try:
                changes[field] = int(v)
            except ValueError as e:
                raise ConfigError(f"{var} must be an integer, got {v!r}") from e

        compat = env.get(ENV_COMPATIBILITY, "").strip().lower()
        if compat:
            changes["compatibility"] = compat

        if not changes:
            return opts
        validate_options({**opts.to_dict(), **changes})
        return replace(opts, **changes)
