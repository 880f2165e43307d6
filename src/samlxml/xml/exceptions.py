# SPDX-FileCopyrightText: 2020-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later


__all__ = 'AssertionFailure', 'CardinalityError', 'MissingAttributeError', 'MissingElementError', 'SchemaViolationError', 'XMLBindingError'


class XMLBindingError(ValueError):
    """Base class for errors raised while building or parsing XML elements."""


class SchemaViolationError(XMLBindingError):
    """Raised when a value does not satisfy the lexical constraints of the schema."""


class MissingAttributeError(SchemaViolationError):
    """Raised when a mandatory attribute is missing from a parsed element."""

    def __init__(self, attribute: str, element: str) -> None:
        super().__init__(f'Missing {attribute!r} attribute on {element}.')
        self.attribute = attribute
        self.element = element


class MissingElementError(SchemaViolationError):
    """Raised when a mandatory child element is missing from a parsed element."""

    def __init__(self, child: str, element: str) -> None:
        super().__init__(f'Missing mandatory {child!r} element from {element!r}')
        self.child = child
        self.element = element


class CardinalityError(XMLBindingError):
    """Raised when a collection that must not be empty has no items."""


class AssertionFailure(XMLBindingError):  # noqa: N818
    """Raised when an invariant that spans multiple fields does not hold."""
