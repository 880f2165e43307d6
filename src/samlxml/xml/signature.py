# SPDX-FileCopyrightText: 2020-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

import logging
from copy import deepcopy
from typing import Protocol

from samlxml.constants import NS_XDSIG

from . import ETreeElement, detach
from .exceptions import AssertionFailure, SchemaViolationError

__all__ = 'SIGNATURE_TAG', 'SignableElement', 'SignatureEngine', 'SignedElement', 'find_signature'


SIGNATURE_TAG = f'{{{NS_XDSIG}}}Signature'

logger = logging.getLogger(__name__)


class SignatureEngine(Protocol):
    """The cryptographic side of enveloped XML signatures"""

    def sign(self, element: ETreeElement) -> ETreeElement:
        """Return a ds:Signature element computed over element (which has no signature of its own)"""
        ...

    def verify(self, element: ETreeElement) -> bool:
        """Check the enveloped ds:Signature carried by element"""
        ...


class SignableElement(Protocol):
    _qualname_: str | None

    def to_unsigned_xml(self, parent: ETreeElement | None = None) -> ETreeElement: ...


def find_signature(element: ETreeElement) -> ETreeElement | None:
    """Return the enveloped ds:Signature child of element, if it has one"""
    signatures = [child for child in element if child.tag == SIGNATURE_TAG]
    if len(signatures) > 1:
        raise SchemaViolationError(f'Excess ds:Signature elements in {etree_qualname(element)!r}')
    return signatures[0] if signatures else None


def etree_qualname(element: ETreeElement) -> str:
    local_name = element.tag.rpartition('}')[2]
    return f'{element.prefix}:{local_name}' if element.prefix else local_name


class SignedElement[E: SignableElement]:
    """
    Tracks the signature state of an element.

    An element is either built by the application, in which case it starts out
    unsigned, or it is parsed, in which case the node it was parsed from is kept
    and it counts as signed if that node carries a ds:Signature. Signing never
    touches the wrapped element or the original node, it produces a new node.
    """

    __slots__ = '_element', '_original', '_signature', '_signed'

    def __init__(self, element: E, *, original: ETreeElement | None = None, signed: ETreeElement | None = None) -> None:
        if signed is None and original is not None and find_signature(original) is not None:
            signed = original
        self._element = element
        self._original = original
        self._signature = find_signature(signed) if signed is not None else None
        self._signed = signed

    def __repr__(self) -> str:
        state = 'signed' if self.is_signed else 'unsigned'
        return f'<{self.__class__.__name__} {self._element._qualname_} ({state})>'

    @property
    def element(self) -> E:
        return self._element

    @property
    def original_xml(self) -> ETreeElement | None:
        return self._original

    @property
    def signature(self) -> ETreeElement | None:
        return self._signature

    @property
    def signed_xml(self) -> ETreeElement | None:
        return self._signed

    @property
    def is_signed(self) -> bool:
        return self._signed is not None

    def get_original_xml(self) -> ETreeElement:
        if self._original is not None:
            return self._original
        return self._element.to_unsigned_xml()

    def sign(self, engine: SignatureEngine) -> ETreeElement:
        element = deepcopy(self.get_original_xml())
        if (signature := find_signature(element)) is not None:
            detach(signature)
        signature = engine.sign(element)
        element.insert(0, signature)
        self._signature = signature
        self._signed = element
        logger.debug('Signed %s', self._element._qualname_)
        return element

    def verify(self, engine: SignatureEngine) -> bool:
        if self._signed is None:
            raise AssertionFailure(f'Cannot verify {self._element._qualname_}: the element is not signed')
        verified = engine.verify(self._signed)
        if not verified:
            logger.warning('Signature verification failed for %s', self._element._qualname_)
        return verified

    def to_xml(self, parent: ETreeElement | None = None) -> ETreeElement:
        if self._signed is None:
            return self._element.to_unsigned_xml(parent)
        element = deepcopy(self._signed)
        if parent is not None:
            parent.append(element)
        return element
