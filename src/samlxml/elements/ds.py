# SPDX-FileCopyrightText: 2020-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

"""The subset of XML Signature elements used by SAML metadata"""

from samlxml.constants import NS_XDSIG
from samlxml.xml import AnnotatedXMLElement, MultiElement, Namespace, OptionalAttribute, TextValue, Wildcard
from samlxml.xml.exceptions import CardinalityError

__all__ = 'DSElement', 'KeyInfo', 'KeyName', 'Signature', 'ns_ds'


ns_ds = Namespace(NS_XDSIG, prefix='ds')


class DSElement(AnnotatedXMLElement, namespace=ns_ds):
    pass


class Signature(DSElement, name='Signature', wildcard=Wildcard.ELEMENTS):
    """The signature content is kept opaque, checking it is the job of a signature engine"""

    id: OptionalAttribute[str] = OptionalAttribute(str, name='Id')


class KeyName(DSElement, name='KeyName'):
    value: TextValue[str] = TextValue(str)


class KeyInfo(DSElement, name='KeyInfo', wildcard=Wildcard.ELEMENTS):
    """Key names are modelled, the other kinds of key information are carried as extension children"""

    id: OptionalAttribute[str] = OptionalAttribute(str, name='Id')
    key_names: MultiElement[KeyName] = MultiElement(KeyName, optional=True)

    def _validate_(self) -> None:
        if not self.key_names and self.extension_content.is_empty():  # type: ignore[union-attr]
            raise CardinalityError('ds:KeyInfo cannot be empty')
