# SPDX-FileCopyrightText: 2020-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

"""SAML 2.0 metadata elements"""

from datetime import datetime
from typing import Self, cast

from lxml import etree

from samlxml.constants import ENTITYID_MAX_LENGTH, KEY_USE_ENCRYPTION, KEY_USE_SIGNING, NS_MD
from samlxml.xml import AnnotatedXMLElement, Attribute, Element, ETreeElement, MultiElement, Namespace, OptionalAttribute, OptionalElement, TextValue, Wildcard, parse_string
from samlxml.xml.datamodel import AnyURIAdapter, DurationAdapter, NCNameAdapter, NonEmptyStringAdapter, StringAdapter, is_nonempty
from samlxml.xml.signature import SIGNATURE_TAG, SignatureEngine, SignedElement

from .ds import KeyInfo, Signature

__all__ = (  # noqa: RUF022
    'ns_md',
    'MDElement',
    'EntityIDAdapter',
    'KeyUseAdapter',

    'Extensions',
    'MetadataDocument',
    'AffiliateMember',
    'AffiliationDescriptor',
    'KeyDescriptor',
    'Company',
    'NameIDFormat',
)


ns_md = Namespace(NS_MD, prefix='md')


class EntityIDAdapter(StringAdapter, predicate=lambda value: is_nonempty(value) and len(value) <= ENTITYID_MAX_LENGTH, name='entityID'):
    pass


class KeyUseAdapter(StringAdapter, predicate=lambda value: value in {KEY_USE_SIGNING, KEY_USE_ENCRYPTION}, name='KeyTypes'):
    pass


class MDElement(AnnotatedXMLElement, namespace=ns_md):
    pass


class Extensions(MDElement, name='Extensions', wildcard=Wildcard.ELEMENTS):
    """Container for the metadata extensions defined outside of the SAML metadata schema"""


class MetadataDocument(MDElement):
    """
    Base class for the metadata elements that can stand on their own as
    documents: they have an ID, a validity period and can be signed.

    The signature state is tracked by a SignedElement wrapper available as the
    signed attribute. Serializing a signed document emits the signed node, or
    else the element is built anew from its fields, without a signature.
    """

    _reserved_tags_ = frozenset({SIGNATURE_TAG})

    id: OptionalAttribute[str] = OptionalAttribute(str, name='ID', adapter=NCNameAdapter)
    valid_until: OptionalAttribute[datetime] = OptionalAttribute(datetime, name='validUntil')
    cache_duration: OptionalAttribute[str] = OptionalAttribute(str, name='cacheDuration', adapter=DurationAdapter)
    extensions: OptionalElement[Extensions] = OptionalElement(Extensions, omit_empty=True)

    def __init__(self, **kw: object) -> None:
        super().__init__(**kw)
        self._signed_ = SignedElement(self)

    @classmethod
    def from_xml(cls, element: ETreeElement) -> Self:
        instance = super().from_xml(element)
        instance._signed_ = SignedElement(instance, original=element)
        return instance

    def __getstate__(self) -> dict[str, object]:
        state = super().__getstate__()
        signed_xml = self._signed_.signed_xml
        state['signed_xml'] = etree.tostring(signed_xml, with_tail=False) if signed_xml is not None and signed_xml is not self._xml_ else None
        return state

    def __setstate__(self, state: dict[str, object]) -> None:
        super().__setstate__(state)
        signed_xml = cast(bytes | None, state['signed_xml'])
        self._signed_ = SignedElement(self, original=self._xml_, signed=parse_string(signed_xml) if signed_xml is not None else None)

    @property
    def signed(self) -> SignedElement[Self]:
        return self._signed_

    @property
    def signature(self) -> Signature | None:
        signature = self._signed_.signature
        return Signature.from_xml(signature) if signature is not None else None

    def get_original_xml(self) -> ETreeElement:
        return self._signed_.get_original_xml()

    def sign(self, engine: SignatureEngine) -> ETreeElement:
        return self._signed_.sign(engine)

    def verify(self, engine: SignatureEngine) -> bool:
        return self._signed_.verify(engine)

    def to_unsigned_xml(self, parent: ETreeElement | None = None) -> ETreeElement:
        return self._build_(parent)

    def to_xml(self, parent: ETreeElement | None = None) -> ETreeElement:
        return self._signed_.to_xml(parent)


class AffiliateMember(MDElement, name='AffiliateMember'):
    value: TextValue[str] = TextValue(str, adapter=EntityIDAdapter)


class KeyDescriptor(MDElement, name='KeyDescriptor'):
    use: OptionalAttribute[str] = OptionalAttribute(str, adapter=KeyUseAdapter)
    key_info: Element[KeyInfo] = Element(KeyInfo)


class AffiliationDescriptor(MetadataDocument, name='AffiliationDescriptor', wildcard=Wildcard.ATTRIBUTES):
    affiliation_owner_id: Attribute[str] = Attribute(str, name='affiliationOwnerID', adapter=EntityIDAdapter)
    affiliate_members: MultiElement[AffiliateMember] = MultiElement(AffiliateMember, error='List of affiliated members must not be empty.')
    key_descriptors: MultiElement[KeyDescriptor] = MultiElement(KeyDescriptor, optional=True)


class Company(MDElement, name='Company'):
    value: TextValue[str] = TextValue(str, adapter=NonEmptyStringAdapter)


class NameIDFormat(MDElement, name='NameIDFormat'):
    value: TextValue[str] = TextValue(str, adapter=AnyURIAdapter)
