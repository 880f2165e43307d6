# SPDX-FileCopyrightText: 2020-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Metadata extensions for login and discovery user interfaces (SSTC mdui v1.0)"""

from collections.abc import Iterable, Mapping
from typing import ClassVar, Self

from samlxml.constants import NS_MDUI, NS_XML
from samlxml.xml import AnnotatedXMLElement, Attribute, MultiElement, Namespace, TextValue, Wildcard
from samlxml.xml.datamodel import NonEmptyStringAdapter

__all__ = 'DiscoHints', 'DomainHint', 'GeolocationHint', 'IPHint', 'KeywordListAdapter', 'Keywords', 'MDUIElement', 'ns_mdui'


ns_mdui = Namespace(NS_MDUI, prefix='mdui')
ns_xml = Namespace(NS_XML, prefix='xml')


class KeywordListAdapter:
    """Keywords are serialized joined by '+', which makes '+' itself unusable inside a keyword"""

    @staticmethod
    def xml_parse(value: str) -> tuple[str, ...]:
        return KeywordListAdapter._check(tuple(value.split('+')))

    @staticmethod
    def xml_build(value: tuple[str, ...]) -> str:
        return '+'.join(KeywordListAdapter._check(value))

    @staticmethod
    def _check(keywords: tuple[str, ...]) -> tuple[str, ...]:
        if not keywords or not all(keywords):
            raise ValueError('the list of keywords cannot be empty or contain empty keywords')
        if any('+' in keyword for keyword in keywords):
            raise ValueError('keywords cannot contain a "+" character')
        return keywords


class MDUIElement(AnnotatedXMLElement, namespace=ns_mdui):
    pass


class IPHint(MDUIElement, name='IPHint'):
    value: TextValue[str] = TextValue(str, adapter=NonEmptyStringAdapter)


class DomainHint(MDUIElement, name='DomainHint'):
    value: TextValue[str] = TextValue(str, adapter=NonEmptyStringAdapter)


class GeolocationHint(MDUIElement, name='GeolocationHint'):
    value: TextValue[str] = TextValue(str, adapter=NonEmptyStringAdapter)


class DiscoHints(MDUIElement, name='DiscoHints', wildcard=Wildcard.ELEMENTS):
    """
    Hints a discovery service can use to suggest an identity provider.

    Besides XML, the hints have a dictionary form keyed by the hint element
    names (IPHint, DomainHint and GeolocationHint), each holding the list of
    hint values. Extension children are not part of the dictionary form.
    """

    ip_hints: MultiElement[IPHint] = MultiElement(IPHint, optional=True)
    domain_hints: MultiElement[DomainHint] = MultiElement(DomainHint, optional=True)
    geolocation_hints: MultiElement[GeolocationHint] = MultiElement(GeolocationHint, optional=True)

    _hint_fields_: ClassVar[dict[str, str]] = {'IPHint': 'ip_hints', 'DomainHint': 'domain_hints', 'GeolocationHint': 'geolocation_hints'}

    def to_dict(self) -> dict[str, list[str]]:
        hints = {hint_name: [hint.value for hint in getattr(self, field_name)] for hint_name, field_name in self._hint_fields_.items()}
        return {hint_name: values for hint_name, values in hints.items() if values}

    @classmethod
    def from_dict(cls, data: Mapping[str, Iterable[str]]) -> Self:
        unknown_names = [name for name in data if name not in cls._hint_fields_]
        if unknown_names:
            raise ValueError(f'Unknown {cls._qualname_} hint types: {", ".join(map(repr, unknown_names))}')
        arguments: dict[str, object] = {}
        for hint_name, field_name in cls._hint_fields_.items():
            values = data.get(hint_name, ())
            if isinstance(values, str):
                raise TypeError(f'The {hint_name} values must be given as a list of strings, not a string')
            hint_type = cls._fields_[field_name].type
            arguments[field_name] = [hint_type(value=value) for value in values]
        return cls(**arguments)


class Keywords(MDUIElement, name='Keywords'):
    lang: Attribute[str] = Attribute(str, namespace=ns_xml, adapter=NonEmptyStringAdapter)
    keywords: TextValue[tuple[str, ...]] = TextValue(tuple, adapter=KeywordListAdapter)  # type: ignore[arg-type]
