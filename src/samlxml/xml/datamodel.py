# SPDX-FileCopyrightText: 2020-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

import re
from collections.abc import Callable, MutableMapping
from datetime import UTC, datetime
from math import inf
from typing import ClassVar, Protocol, Self, runtime_checkable

__all__ = (  # noqa: RUF022
    'DataConverter',
    'DataAdapter',
    'AdapterRegistry',

    'is_ncname',
    'is_duration',
    'is_any_uri',
    'is_nonempty',

    'StringAdapter',
    'NCNameAdapter',
    'DurationAdapter',
    'AnyURIAdapter',
    'NonEmptyStringAdapter',

    'BooleanAdapter',
    'InstantAdapter',

    'IntegerAdapter',
    'PositiveIntegerAdapter',
)


@runtime_checkable
class DataConverter(Protocol):
    """A protocol that describes how a data type converts between itself and XML"""

    @classmethod
    def xml_parse(cls, value: str) -> Self:
        """Parse XML into the data type"""
        ...

    def xml_build(self: Self) -> str:
        """Build XML from the data type"""
        ...


@runtime_checkable
class DataAdapter[T](Protocol):
    """A protocol that describes an external adapter between a data type T and XML"""

    @staticmethod
    def xml_parse(value: str, /) -> T:
        """Parse XML into the data type"""
        ...

    @staticmethod
    def xml_build(value: T, /) -> str:
        """Build XML from the data type"""
        ...


class AdapterRegistry[T]:
    _adapters: ClassVar[MutableMapping[type, type[DataAdapter]]] = {}

    @classmethod
    def associate(cls, data_type: type[T], adapter: type[DataAdapter[T]]) -> None:
        if issubclass(data_type, DataConverter):
            raise TypeError('Adapters for types that already support the DataConverter protocol must be explicitly provided with the attribute/element descriptors.')
        cls._adapters[data_type] = adapter

    @classmethod
    def get_adapter(cls, data_type: type[T]) -> type[DataAdapter[T]] | None:
        return cls._adapters.get(data_type, None)


# Lexical classes

_ncname_re = re.compile(r'[^\W\d][\w.\-\u00B7\u0300-\u036F\u203F-\u2040]*')
_duration_re = re.compile(r'-?P(?=\d|T\d)(\d+Y)?(\d+M)?(\d+D)?(T(?=\d)(\d+H)?(\d+M)?(\d+(\.\d+)?S)?)?', re.ASCII)
_instant_re = re.compile(r'-?\d{4,}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?(Z|[+-]\d{2}:\d{2})?', re.ASCII)


def is_ncname(value: str) -> bool:
    """Check that value is a non-colonized XML name (xs:NCName)"""
    return _ncname_re.fullmatch(value) is not None


def is_duration(value: str) -> bool:
    """Check that value matches the ISO-8601 duration grammar (xs:duration)"""
    return _duration_re.fullmatch(value) is not None


def is_any_uri(value: str) -> bool:
    return bool(value) and not any(char.isspace() for char in value)


def is_nonempty(value: str) -> bool:
    return bool(value.strip())


class StringAdapter:
    def __init_subclass__(cls, *, predicate: Callable[[str], bool] | None = None, name: str = 'string', **kw: object) -> None:
        super().__init_subclass__(**kw)

        # The same check guards both directions, so an invalid value can neither be built nor parsed.

        def check(value: str) -> str:
            if predicate is None or predicate(value):
                return value
            raise ValueError(f'invalid value {value!r} for {name}')

        cls.xml_parse = staticmethod(check)  # type: ignore[method-assign]
        cls.xml_build = staticmethod(check)  # type: ignore[method-assign]

    @staticmethod
    def xml_parse(value: str) -> str:
        return value

    @staticmethod
    def xml_build(value: str) -> str:
        return value


class NCNameAdapter(StringAdapter, predicate=is_ncname, name='NCName'):
    pass


class DurationAdapter(StringAdapter, predicate=is_duration, name='duration'):
    pass


class AnyURIAdapter(StringAdapter, predicate=is_any_uri, name='anyURI'):
    pass


class NonEmptyStringAdapter(StringAdapter, predicate=is_nonempty, name='non-empty string'):
    pass


class BooleanAdapter:
    @staticmethod
    def xml_parse(value: str) -> bool:
        match value.strip():
            case 'true' | '1':
                return True
            case 'false' | '0':
                return False
            case _:
                raise ValueError(f'Invalid boolean value: {value!r}')

    @staticmethod
    def xml_build(value: bool) -> str:  # noqa: FBT001
        return 'true' if value else 'false'


class InstantAdapter:
    """
    Instants are always written in UTC with second precision and a literal Z
    suffix. Naive datetime objects are taken to already be in UTC.
    """

    @staticmethod
    def xml_parse(value: str) -> datetime:
        if _instant_re.fullmatch(value) is None:
            raise ValueError(f'invalid value {value!r} for dateTime')
        instant = datetime.fromisoformat(value)
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=UTC)
        return instant.astimezone(UTC).replace(microsecond=0)

    @staticmethod
    def xml_build(value: datetime) -> str:
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC).strftime('%Y-%m-%dT%H:%M:%SZ')


AdapterRegistry.associate(bool, BooleanAdapter)
AdapterRegistry.associate(datetime, InstantAdapter)


class IntegerAdapter:
    def __init_subclass__(cls, *, min_value: int | None = None, max_value: int | None = None, name: str = 'integer', **kw: object) -> None:
        super().__init_subclass__(**kw)

        lower_bound: int | float = min_value if min_value is not None else -inf
        upper_bound: int | float = max_value if max_value is not None else +inf

        def xml_parse(value: str) -> int:
            number = int(value)
            if lower_bound <= number <= upper_bound:
                return number
            raise ValueError(f"invalid value '{value}' for {name}")

        def xml_build(value: int) -> str:
            if lower_bound <= value <= upper_bound:
                return str(value)
            raise ValueError(f"invalid value '{value}' for {name}")

        cls.xml_parse = staticmethod(xml_parse)  # type: ignore[method-assign]
        cls.xml_build = staticmethod(xml_build)  # type: ignore[method-assign]

    @staticmethod
    def xml_parse(value: str) -> int:
        return int(value)

    @staticmethod
    def xml_build(value: int) -> str:
        return str(value)


class PositiveIntegerAdapter(IntegerAdapter, min_value=+1, name='positive integer'):
    pass
