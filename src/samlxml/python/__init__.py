# SPDX-FileCopyrightText: 2020-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

from enum import Enum
from os import PathLike
from pathlib import Path
from tempfile import NamedTemporaryFile
from types import NoneType, UnionType
from typing import TypeAliasType

__all__ = 'MarkerEnum', 'atomic_write', 'reprproxy'


class MarkerEnum(Enum):
    """Base class for defining markers"""

    def __repr__(self) -> str:
        return f'{self.__class__.__qualname__}.{self.name}'


class reprproxy:  # noqa: N801
    """
    A proxy that represents types the way they are spelled in code.

    Used to make the error messages about mismatched types readable.
    Type aliases, union types, classes and Enum members are handled,
    everything else gets its normal representation.
    """

    def __init__(self, value: object) -> None:
        self.value = value

    def __repr__(self) -> str:
        match self.value:
            case TypeAliasType() as value:
                return repr(reprproxy(value.__value__))
            case UnionType() as value:
                return ' | '.join('None' if _type is NoneType else repr(reprproxy(_type)) for _type in value.__args__)
            case Enum() as value:
                return f'{value.__class__.__qualname__}.{value.name}'
            case type() as value:
                return value.__qualname__
            case value:
                return repr(value)

    __str__ = __repr__


def atomic_write(path: str | PathLike[str], data: bytes, *, mode: int = 0o644) -> None:
    """Write data to path by replacing it with a fully written file having the given mode"""
    path = Path(path).expanduser()
    with NamedTemporaryFile(dir=path.parent, delete=False) as tempfile:
        tempfile.write(data)
    temp_path = Path(tempfile.name)
    temp_path.chmod(mode)
    temp_path.replace(path)
