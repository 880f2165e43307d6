# SPDX-FileCopyrightText: 2020-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

import logging
from abc import ABC, abstractmethod
from os import PathLike
from pathlib import Path
from typing import Protocol

from lxml import etree

from samlxml.xml import ETreeElement
from samlxml.xml.exceptions import SchemaViolationError

__all__ = 'RelaxNGValidator', 'Validator', 'XMLSchemaValidator'


logger = logging.getLogger(__name__)


class Validator(Protocol):
    def validate(self, element: ETreeElement) -> bool: ...

    def assert_valid(self, element: ETreeElement) -> None: ...


class SchemaValidator(ABC):
    schema_directory = Path(__file__).parent

    schema: etree.XMLSchema | etree.RelaxNG

    def __init__(self, schema_file: str | PathLike[str]) -> None:
        self.schema_path = self.schema_directory / schema_file
        self.schema = self._load_schema(self.schema_path)

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}({str(self.schema_path)!r})'

    def __eq__(self, other: object) -> bool:
        if isinstance(other, SchemaValidator) and type(other) is type(self):
            return self.schema_path == other.schema_path
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.schema_path)

    @staticmethod
    @abstractmethod
    def _load_schema(path: Path) -> etree.XMLSchema | etree.RelaxNG:
        raise NotImplementedError

    def validate(self, element: ETreeElement) -> bool:
        valid = self.schema.validate(element)
        if not valid:
            logger.debug('%s failed validation against %s: %s', element.tag, self.schema_path.name, self.schema.error_log.last_error)
        return valid

    def assert_valid(self, element: ETreeElement) -> None:
        if not self.schema.validate(element):
            errors = '; '.join(f'line {error.line}: {error.message}' for error in self.schema.error_log)
            raise SchemaViolationError(f'{element.tag} does not conform to {self.schema_path.name}: {errors}')


class XMLSchemaValidator(SchemaValidator):
    @staticmethod
    def _load_schema(path: Path) -> etree.XMLSchema:
        return etree.XMLSchema(file=str(path))


class RelaxNGValidator(SchemaValidator):
    @staticmethod
    def _load_schema(path: Path) -> etree.RelaxNG:
        return etree.RelaxNG(file=str(path))
