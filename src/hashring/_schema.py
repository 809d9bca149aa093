from __future__ import annotations

from typing import Any, Mapping, Type

from jsonschema import Draft202012Validator


def validate_or_raise(
    validator: Draft202012Validator,
    obj: Mapping[str, Any],
    *,
    error: Type[Exception],
) -> None:
    errs = sorted(validator.iter_errors(dict(obj)), key=lambda e: list(e.path))
    if errs:
        msg = "; ".join([f"{list(e.path)}: {e.message}" for e in errs[:5]])
        raise error(msg)
