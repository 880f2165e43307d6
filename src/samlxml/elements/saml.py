# SPDX-FileCopyrightText: 2020-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

"""SAML 2.0 assertion elements"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from inspect import Parameter
from typing import Self, cast, overload

from samlxml.constants import NAMEID_ENTITY, NS_SAML, NS_XS, NS_XSI
from samlxml.python import reprproxy
from samlxml.xml import AnnotatedXMLElement, ETreeElement, FieldDescriptor, MultiDataElement, MultiElement, Namespace, NSMap, OptionalAttribute, OptionalElement, TextValue, Wildcard, XMLElement
from samlxml.xml import Attribute as AttributeField
from samlxml.xml.datamodel import AnyURIAdapter, BooleanAdapter, DataAdapter, InstantAdapter, IntegerAdapter, NCNameAdapter, NonEmptyStringAdapter, StringAdapter
from samlxml.xml.exceptions import AssertionFailure, CardinalityError, SchemaViolationError

__all__ = (  # noqa: RUF022
    'ns_saml',
    'SAMLElement',

    'Issuer',
    'SubjectLocality',
    'SchemaType',
    'AttributeValue',
    'Attribute',
    'AttributeStatement',
    'Action',
    'Evidence',
    'Decision',
    'AuthzDecisionStatement',
)


ns_saml = Namespace(NS_SAML, prefix='saml')
ns_xs = Namespace(NS_XS, prefix='xs')
ns_xsi = Namespace(NS_XSI, prefix='xsi')

XSI_TYPE = f'{{{NS_XSI}}}type'

logger = logging.getLogger(__name__)


class Decision(StrEnum):
    PERMIT = 'Permit'
    DENY = 'Deny'
    INDETERMINATE = 'Indeterminate'

    @classmethod
    def xml_parse(cls, value: str) -> Self:
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f'invalid value {value!r} for DecisionType') from None

    def xml_build(self) -> str:
        return self.value


type AttributeValueType = str | bool | int | datetime


@dataclass(frozen=True)
class SchemaType:
    """An XML Schema type name, as given by an xsi:type attribute"""

    namespace: str | None
    name: str
    prefix: str | None = field(default=None, compare=False)

    @property
    def qualname(self) -> str:
        return f'{self.prefix}:{self.name}' if self.prefix else self.name


class XSIType(FieldDescriptor[SchemaType]):
    """The xsi:type attribute of an element, resolved against the namespaces in scope"""

    def __init__(self) -> None:
        self.name = None
        self.type = SchemaType

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}()'

    @property
    def xml_tag(self) -> str:
        return XSI_TYPE

    @overload
    def __get__(self, instance: None, owner: type[XMLElement]) -> Self: ...

    @overload
    def __get__(self, instance: XMLElement, owner: type[XMLElement] | None = None) -> SchemaType | None: ...

    def __get__(self, instance: XMLElement | None, owner: type[XMLElement] | None = None) -> Self | SchemaType | None:
        if instance is None:
            return self
        return cast(SchemaType | None, instance._values_[self.name])  # type: ignore[index]

    @property
    def signature_parameter(self) -> Parameter:
        assert self.name is not None  # noqa: S101 (used by type checkers)
        return Parameter(name=self.name, kind=Parameter.KEYWORD_ONLY, annotation=SchemaType | None, default=None)

    def init(self, instance: XMLElement, value: object) -> None:
        if value is not None and not isinstance(value, SchemaType):
            raise TypeError(f'the {self.name!r} attribute must be of type {SchemaType.__qualname__}')
        instance._values_[self.name] = value  # type: ignore[index]

    def from_xml(self, instance: XMLElement) -> None:
        element: ETreeElement = instance._xml_  # type: ignore[assignment]
        xsi_type = element.get(XSI_TYPE)
        if xsi_type is None:
            instance._values_[self.name] = None  # type: ignore[index]
            return
        prefix, _, name = xsi_type.strip().rpartition(':')
        namespace = element.nsmap.get(prefix or None)
        if prefix and namespace is None:
            raise SchemaViolationError(f'Undeclared namespace prefix in xsi:type={xsi_type!r} on {instance._qualname_!r}')
        instance._values_[self.name] = SchemaType(namespace, name, prefix=prefix or None)  # type: ignore[index]

    def to_xml(self, instance: XMLElement, element: ETreeElement) -> None:
        schema_type = cast(SchemaType | None, instance._values_[self.name])  # type: ignore[index]
        if schema_type is None:
            return
        if schema_type.namespace is None:
            element.set(XSI_TYPE, schema_type.name)
            return
        prefix = next(prefix for prefix, namespace in element.nsmap.items() if prefix is not None and namespace == schema_type.namespace)
        element.set(XSI_TYPE, f'{prefix}:{schema_type.name}')


class TypedValue(TextValue[AttributeValueType]):
    """
    The text value of an element whose schema type is indicated by xsi:type.

    Values with one of the supported built-in XML Schema types are converted
    to the matching Python type, everything else (including values without an
    xsi:type) is kept as a string. The xsi:type itself is held by the XSIType
    field given to the constructor.
    """

    value_types: dict[type, tuple[str, type[DataAdapter]]] = {
        str: ('string', StringAdapter),
        bool: ('boolean', BooleanAdapter),
        int: ('integer', IntegerAdapter),
        datetime: ('dateTime', InstantAdapter),
    }

    schema_types: dict[str, tuple[type, type[DataAdapter]]] = {schema_type: (value_type, adapter) for value_type, (schema_type, adapter) in value_types.items()}

    def __init__(self, xsi_type: XSIType, /) -> None:
        super().__init__(str)
        self.type = str | bool | int | datetime  # type: ignore[assignment]
        self.xsi_type = xsi_type

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}({self.xsi_type!r})'

    @classmethod
    def schema_type_for(cls, value: object) -> SchemaType | None:
        """The built-in XML Schema type that matches the Python type of value"""
        try:
            schema_type, _ = cls.value_types[type(value)]
        except KeyError:
            return None
        return SchemaType(NS_XS, schema_type, prefix=ns_xs.prefix)

    @classmethod
    def value_type_for(cls, schema_type: SchemaType | None) -> type:
        """The Python type of the values with the given XML Schema type"""
        if schema_type is None or schema_type.namespace != NS_XS or schema_type.name not in cls.schema_types:
            return str
        value_type, _ = cls.schema_types[schema_type.name]
        return value_type

    @property
    def signature_parameter(self) -> Parameter:
        assert self.name is not None  # noqa: S101 (used by type checkers)
        return Parameter(name=self.name, kind=Parameter.KEYWORD_ONLY, annotation=self.type)

    def init(self, instance: XMLElement, value: object) -> None:
        try:
            _, adapter = self.value_types[type(value)]
        except KeyError:
            raise TypeError(f'the {self.name!r} text value must be of type {reprproxy(self.type)}') from None
        try:
            instance._values_[self.name] = adapter.xml_parse(adapter.xml_build(value))  # type: ignore[index]
        except ValueError as exc:
            raise SchemaViolationError(f'Invalid value for text value {self.name!r} of {instance._qualname_!r}: {exc!s}') from exc

    def from_xml(self, instance: XMLElement) -> None:
        element: ETreeElement = instance._xml_  # type: ignore[assignment]
        text = element.text or ''
        schema_type = self.xsi_type.__get__(instance)
        if self.value_type_for(schema_type) is str:
            if schema_type is not None and (schema_type.namespace, schema_type.name) != (NS_XS, 'string'):
                logger.debug('Keeping the %s value with xsi:type=%r as a string', instance._qualname_, schema_type.qualname)
            instance._values_[self.name] = text  # type: ignore[index]
            return
        assert schema_type is not None  # noqa: S101 (used by type checkers)
        _, adapter = self.schema_types[schema_type.name]
        try:
            instance._values_[self.name] = adapter.xml_parse(text.strip())  # type: ignore[index]
        except ValueError as exc:
            raise SchemaViolationError(f'Invalid value for xs:{schema_type.name} from {instance._qualname_!r}: {exc!s}') from exc

    def to_xml(self, instance: XMLElement, element: ETreeElement) -> None:
        value = instance._values_[self.name]  # type: ignore[index]
        _, adapter = self.value_types[type(value)]
        element.text = adapter.xml_build(value)


class SAMLElement(AnnotatedXMLElement, namespace=ns_saml):
    pass


class Issuer(SAMLElement, name='Issuer'):
    value: TextValue[str] = TextValue(str, adapter=NonEmptyStringAdapter)
    name_qualifier: OptionalAttribute[str] = OptionalAttribute(str, name='NameQualifier')
    sp_name_qualifier: OptionalAttribute[str] = OptionalAttribute(str, name='SPNameQualifier')
    format: OptionalAttribute[str] = OptionalAttribute(str, name='Format', adapter=AnyURIAdapter)
    sp_provided_id: OptionalAttribute[str] = OptionalAttribute(str, name='SPProvidedID')

    def _validate_(self) -> None:
        # an issuer with the entity format (the default) is identified by its value alone
        if self.format in (None, NAMEID_ENTITY) and (self.name_qualifier, self.sp_name_qualifier, self.sp_provided_id) != (None, None, None):
            raise AssertionFailure('Illegal combination of attributes being used')


class SubjectLocality(SAMLElement, name='SubjectLocality'):
    address: OptionalAttribute[str] = OptionalAttribute(str, name='Address', adapter=NonEmptyStringAdapter)
    dns_name: OptionalAttribute[str] = OptionalAttribute(str, name='DNSName', adapter=NonEmptyStringAdapter)


class AttributeValue(SAMLElement, name='AttributeValue', nsmap={ns_xs.prefix: ns_xs, ns_xsi.prefix: ns_xsi}):
    """
    An attribute value, typed through xsi:type.

    When built without an explicit xsi_type, the type follows the Python type
    of the value. Parsed values keep the xsi:type they came with, including
    its absence, and emit it back unchanged.
    """

    xsi_type: XSIType = XSIType()
    value: TypedValue = TypedValue(xsi_type)

    def __init__(self, **kw: object) -> None:
        if 'xsi_type' not in kw:
            kw['xsi_type'] = TypedValue.schema_type_for(kw.get('value'))
        super().__init__(**kw)

    def _validate_(self) -> None:
        value_type = TypedValue.value_type_for(self.xsi_type)
        if type(self.value) is not value_type:
            schema_type = self.xsi_type.qualname if self.xsi_type is not None else 'untyped'
            raise AssertionFailure(f'A {type(self.value).__name__} value cannot be used as an {schema_type} attribute value')

    def _build_nsmap_(self) -> NSMap | None:
        nsmap = super()._build_nsmap_() or {}
        schema_type = self.xsi_type
        if schema_type is None or schema_type.namespace is None or schema_type.namespace in nsmap.values():
            return nsmap or None
        prefix = schema_type.prefix
        if prefix is None or prefix in nsmap:
            prefix = f'ns{len(nsmap)}'
        return nsmap | {prefix: schema_type.namespace}


class Attribute(SAMLElement, name='Attribute', wildcard=Wildcard.ATTRIBUTES):
    name: AttributeField[str] = AttributeField(str, name='Name', adapter=NonEmptyStringAdapter)
    name_format: OptionalAttribute[str] = OptionalAttribute(str, name='NameFormat', adapter=AnyURIAdapter)
    friendly_name: OptionalAttribute[str] = OptionalAttribute(str, name='FriendlyName', adapter=NonEmptyStringAdapter)
    values: MultiElement[AttributeValue] = MultiElement(AttributeValue, optional=True)


class AttributeStatement(SAMLElement, name='AttributeStatement'):
    attributes: MultiElement[Attribute] = MultiElement(Attribute, error='List of attributes must not be empty.')


class Action(SAMLElement, name='Action'):
    namespace: AttributeField[str] = AttributeField(str, name='Namespace', adapter=AnyURIAdapter)
    value: TextValue[str] = TextValue(str, adapter=NonEmptyStringAdapter)


class Evidence(SAMLElement, name='Evidence'):
    assertion_id_refs: MultiDataElement[str] = MultiDataElement(str, name='AssertionIDRef', optional=True, adapter=NCNameAdapter)
    assertion_uri_refs: MultiDataElement[str] = MultiDataElement(str, name='AssertionURIRef', optional=True, adapter=AnyURIAdapter)

    def _validate_(self) -> None:
        if not self.assertion_id_refs and not self.assertion_uri_refs:
            raise CardinalityError('saml:Evidence must reference at least one assertion')


class AuthzDecisionStatement(SAMLElement, name='AuthzDecisionStatement'):
    resource: AttributeField[str] = AttributeField(str, name='Resource', adapter=AnyURIAdapter)
    decision: AttributeField[Decision] = AttributeField(Decision, name='Decision')
    actions: MultiElement[Action] = MultiElement(Action, error='List of actions must not be empty.')
    evidence: OptionalElement[Evidence] = OptionalElement(Evidence)
