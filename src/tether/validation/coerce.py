"""String coercion for schemas that validate URL- and header-sourced input.

Path segments, query strings and headers always arrive as strings.
``coerce()`` rewrites a schema so that wherever it expects a number or a
boolean it first converts a string representation, recursively through
models, unions, ``Annotated`` metadata and array types.

Conversion rules:

- ``int`` / ``float``: a string is parsed as ``int``, then ``float``;
  unparseable strings pass through and fail the strict numeric check.
- ``bool``: ``"true"`` -> ``True`` and ``"false"`` -> ``False`` only.
  Any other string passes through unchanged, so ``"yes"`` fails a strict
  boolean field.
- ``str``, ``int``, ``float``, ``bool`` given a list (a repeated query
  key): the last value wins, so ``?page=1&page=2`` reads as ``"2"``.
- ``BaseModel``: every field is coerced; the derived model subclasses the
  original, keeping its config, aliases and validators.
- arrays (``list``, ``tuple``, ``set``, ``frozenset``, ``Sequence``): the
  element type is coerced and a single bare string is accepted as a
  one-element array (``?tag=a`` for ``tags: list[str]``).

Both rewritten models and rewritten schemas are cached for the process
lifetime, keyed by the identity of the input. Concurrent first use may
derive the same result twice; ``dict.setdefault`` keeps exactly one and
never exposes a partially built entry.
"""

import collections.abc
import types
from copy import copy
from typing import Annotated, Any, Union, get_args, get_origin

from pydantic import BaseModel, BeforeValidator, RootModel, create_model

from tether.validation.schema import Schema

_ARRAY_ORIGINS = (list, tuple, set, frozenset, collections.abc.Sequence)
_UNION_ORIGINS = (Union, types.UnionType)

_model_cache: dict[type[BaseModel], type[BaseModel]] = {}
_schema_cache: dict[Schema, Schema] = {}


def last_value(value: Any) -> Any:
    """Collapse a non-empty list to its last element."""
    if isinstance(value, list) and value:
        return value[-1]
    return value


def to_number(value: Any) -> Any:
    """Parse a numeric string; anything else is returned unchanged."""
    value = last_value(value)
    if not isinstance(value, str):
        return value
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        return value


def to_boolean(value: Any) -> Any:
    """Map ``"true"``/``"false"`` to booleans; pass everything else through."""
    value = last_value(value)
    if value == "true":
        return True
    if value == "false":
        return False
    return value


def _wrap_scalar(value: Any) -> Any:
    if isinstance(value, str):
        return [value]
    return value


def _array_validator(origin: Any) -> BeforeValidator:
    # Strict mode only accepts the exact container type for these
    if origin in (tuple, set, frozenset):

        def convert(value: Any) -> Any:
            value = _wrap_scalar(value)
            if isinstance(value, list):
                return origin(value)
            return value

        return BeforeValidator(convert)
    return BeforeValidator(_wrap_scalar)


def coerce(schema: Schema) -> Schema:
    """Return a schema that also accepts string forms of numbers and booleans.

    The result for a given schema object is computed once and reused.
    Coercing an already coerced schema returns it unchanged.
    """
    if schema.coerced:
        return schema
    cached = _schema_cache.get(schema)
    if cached is not None:
        return cached
    derived = Schema(coerce_type(schema.annotation), strict=schema.strict, coerced=True)
    return _schema_cache.setdefault(schema, derived)


def coerce_type(annotation: Any) -> Any:
    """Rewrite a type annotation per the module's conversion rules."""
    return _coerce(annotation, frozenset())


def _coerce(tp: Any, active: frozenset[type]) -> Any:
    origin = get_origin(tp)

    if origin is Annotated:
        inner, *metadata = get_args(tp)
        coerced = _coerce(inner, active)
        if coerced is inner:
            return tp
        return Annotated[coerced, *metadata]

    if tp is bool:
        return Annotated[bool, BeforeValidator(to_boolean)]
    if tp is int or tp is float:
        return Annotated[tp, BeforeValidator(to_number)]
    if tp is str:
        return Annotated[str, BeforeValidator(last_value)]

    if isinstance(tp, type) and issubclass(tp, BaseModel):
        return _coerce_model(tp, active)

    if origin in _UNION_ORIGINS:
        args = get_args(tp)
        coerced_args = tuple(_coerce(arg, active) for arg in args)
        if all(new is old for new, old in zip(coerced_args, args, strict=True)):
            return tp
        return Union[coerced_args]  # noqa: UP007

    if origin in _ARRAY_ORIGINS:
        args = get_args(tp)
        if not args:
            return Annotated[tp, _array_validator(origin)]
        coerced_args = tuple(arg if arg is Ellipsis else _coerce(arg, active) for arg in args)
        rebuilt = origin[coerced_args if len(coerced_args) > 1 else coerced_args[0]]
        return Annotated[rebuilt, _array_validator(origin)]

    return tp


def _coerce_model(model: type[BaseModel], active: frozenset[type]) -> type[BaseModel]:
    if issubclass(model, RootModel) or model in active:
        return model

    cached = _model_cache.get(model)
    if cached is not None:
        return cached

    active = active | {model}
    fields: dict[str, Any] = {}
    for name, info in model.model_fields.items():
        coerced = _coerce(info.annotation, active)
        if coerced is not info.annotation:
            fields[name] = (coerced, copy(info))

    if fields:
        derived = create_model(
            model.__name__,
            __base__=model,
            __module__=model.__module__,
            **fields,
        )
    else:
        derived = model

    # A derived model maps to itself so coercing it again is a cache hit
    _model_cache.setdefault(derived, derived)
    return _model_cache.setdefault(model, derived)
