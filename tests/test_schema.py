from __future__ import annotations

import pytest
from jsonschema import Draft202012Validator

from hashring._schema import validate_or_raise
from hashring.config import ConfigError, validate_options
from hashring.servers import ServerSpecError, validate_server_mapping

_validator = Draft202012Validator(
    {"type": "object", "additionalProperties": {"type": "integer"}}
)


class _Boom(Exception):
    pass


def test_passes_valid_objects() -> None:
    validate_or_raise(_validator, {"a": 1}, error=_Boom)


def test_errors_are_sorted_and_capped() -> None:
    bad = {k: "x" for k in "gfedcba"}
    with pytest.raises(_Boom) as exc:
        validate_or_raise(_validator, bad, error=_Boom)
    parts = str(exc.value).split("; ")
    assert len(parts) == 5
    assert [p.split(":")[0] for p in parts] == ["['a']", "['b']", "['c']", "['d']", "['e']"]


def test_callers_raise_their_own_error_types() -> None:
    with pytest.raises(ConfigError):
        validate_options({"replicas": 0})
    with pytest.raises(ServerSpecError):
        validate_server_mapping({"a:1": -1})
