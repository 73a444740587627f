"""
Converter registry for tetl.

Maps a value type name (plus nullability) to a converter class.  Lookup
happens once per bound column when a session starts, so an unregistered
type fails fast with a ``ConfigurationError`` before any row is read.

Built-in type names:

    text, int32, int64, float, decimal, bool, char, datetime

each registered as a plain and a nullable variant.  ``register()`` adds
or overrides a converter; unless an explicit nullable class is given,
the nullable variant is derived by wrapping the plain converter in
``NullableConverter``.
"""

from __future__ import annotations

import logging
from typing import Callable

from tetl.converters.base import Converter, NullableConverter
from tetl.converters.numbers import (
    DecimalConverter,
    FloatConverter,
    Int32Converter,
    Int64Converter,
)
from tetl.converters.text import BoolConverter, CharConverter, TextConverter
from tetl.converters.timestamps import DateTimeConverter
from tetl.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

ConverterFactory = Callable[[str | None], Converter]

_BUILTINS: dict[str, type[Converter]] = {
    "text": TextConverter,
    "int32": Int32Converter,
    "int64": Int64Converter,
    "float": FloatConverter,
    "decimal": DecimalConverter,
    "bool": BoolConverter,
    "char": CharConverter,
    "datetime": DateTimeConverter,
}


def _nullable_factory(converter_cls: ConverterFactory) -> ConverterFactory:
    def factory(format: str | None = None) -> Converter:
        return NullableConverter(converter_cls(format))

    return factory


class ConverterRegistry:
    """Type-name -> converter factory table.

    A factory is any callable taking the descriptor's format hint and
    returning a ``Converter`` -- normally a ``Converter`` subclass.
    """

    def __init__(self, include_builtins: bool = True) -> None:
        self._factories: dict[tuple[str, bool], ConverterFactory] = {}
        if include_builtins:
            for type_name, converter_cls in _BUILTINS.items():
                self.register(type_name, converter_cls)

    def __contains__(self, key: tuple[str, bool]) -> bool:
        return key in self._factories

    def register(
        self,
        type_name: str,
        converter_cls: ConverterFactory,
        nullable_cls: ConverterFactory | None = None,
    ) -> None:
        """Add or replace the converters for *type_name*."""
        if (type_name, False) in self._factories:
            logger.debug("Overriding converter for type '%s'", type_name)
        self._factories[(type_name, False)] = converter_cls
        self._factories[(type_name, True)] = nullable_cls or _nullable_factory(converter_cls)

    def type_names(self) -> list[str]:
        return sorted({name for name, _ in self._factories})

    def create(
        self,
        type_name: str,
        nullable: bool = False,
        format: str | None = None,
        *,
        attribute: str | None = None,
    ) -> Converter:
        """Instantiate the converter for a type.

        Raises:
            ConfigurationError: If no converter is registered for the type.
        """
        try:
            factory = self._factories[(type_name, nullable)]
        except KeyError:
            kind = "nullable " if nullable else ""
            target = f" which is required for attribute '{attribute}'" if attribute else ""
            raise ConfigurationError(
                f"No converter available for {kind}type '{type_name}'{target}. "
                f"Registered types: {self.type_names()}"
            ) from None
        return factory(format)


_DEFAULT_REGISTRY = ConverterRegistry()


def default_registry() -> ConverterRegistry:
    """The shared registry used when a serializer is given none."""
    return _DEFAULT_REGISTRY


def register_converter(
    type_name: str,
    converter_cls: ConverterFactory,
    nullable_cls: ConverterFactory | None = None,
) -> None:
    """Add or replace a converter on the shared default registry."""
    _DEFAULT_REGISTRY.register(type_name, converter_cls, nullable_cls)
