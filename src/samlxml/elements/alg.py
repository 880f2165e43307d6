# SPDX-FileCopyrightText: 2020-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Metadata extension for algorithm support (SSTC algsupport v1.0)"""

from samlxml.constants import NS_ALG
from samlxml.xml import AnnotatedXMLElement, Attribute, Namespace, OptionalAttribute, Wildcard
from samlxml.xml.datamodel import AnyURIAdapter, PositiveIntegerAdapter
from samlxml.xml.exceptions import AssertionFailure

__all__ = 'ALGElement', 'DigestMethod', 'SigningMethod', 'ns_alg'


ns_alg = Namespace(NS_ALG, prefix='alg')


class ALGElement(AnnotatedXMLElement, namespace=ns_alg):
    pass


class DigestMethod(ALGElement, name='DigestMethod', wildcard=Wildcard.ELEMENTS):
    algorithm: Attribute[str] = Attribute(str, name='Algorithm', adapter=AnyURIAdapter)


class SigningMethod(ALGElement, name='SigningMethod', wildcard=Wildcard.ELEMENTS):
    algorithm: Attribute[str] = Attribute(str, name='Algorithm', adapter=AnyURIAdapter)
    min_key_size: OptionalAttribute[int] = OptionalAttribute(int, name='MinKeySize', adapter=PositiveIntegerAdapter)
    max_key_size: OptionalAttribute[int] = OptionalAttribute(int, name='MaxKeySize', adapter=PositiveIntegerAdapter)

    def _validate_(self) -> None:
        if self.min_key_size is not None and self.max_key_size is not None and self.min_key_size > self.max_key_size:
            raise AssertionFailure(f'MinKeySize ({self.min_key_size}) cannot be larger than MaxKeySize ({self.max_key_size})')
