# SPDX-FileCopyrightText: 2020-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from copy import deepcopy
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Flag, auto
from inspect import Parameter, Signature
from os import PathLike
from typing import ClassVar, Self, cast, dataclass_transform, overload

from lxml import etree

from samlxml.python import reprproxy

from .datamodel import AdapterRegistry, DataAdapter, DataConverter
from .exceptions import AssertionFailure, CardinalityError, MissingAttributeError, MissingElementError, SchemaViolationError

__all__ = (  # noqa: RUF022
    'ETreeElement',
    'NSMap',
    'Namespace',
    'Wildcard',
    'XMLAttribute',
    'Chunk',
    'ExtensionContainer',
    'XMLElement',
    'AnnotatedXMLElement',

    'FieldDescriptor',
    'Attribute',
    'OptionalAttribute',
    'Element',
    'OptionalElement',
    'MultiElement',
    'MultiDataElement',
    'TextValue',

    'detach',
    'parse_file',
    'parse_string',
)


# noinspection PyProtectedMember
type ETreeElement = etree._Element  # noqa: SLF001
type NSMap = dict[str | None, str]
type XMLData = str | bytes | int | float | Decimal | bool | datetime | DataConverter
type DataAdapterType[T] = type[DataAdapter[T]]

XML_NAMESPACE = 'http://www.w3.org/XML/1998/namespace'

logger = logging.getLogger(__name__)

parser = etree.XMLParser(resolve_entities=False, no_network=True, remove_comments=False, remove_blank_text=False)


def parse_string(data: str | bytes) -> ETreeElement:
    return etree.fromstring(data, parser)


def parse_file(path: str | PathLike[str]) -> ETreeElement:
    return etree.parse(path, parser).getroot()


def detach(node: ETreeElement) -> None:
    """Remove node from its parent, leaving the text that follows it in place"""
    parent = node.getparent()
    if parent is None:
        return
    if node.tail:
        previous = node.getprevious()
        if previous is not None:
            previous.tail = (previous.tail or '') + node.tail
        else:
            parent.text = (parent.text or '') + node.tail
        node.tail = None
    parent.remove(node)


class Namespace(str):
    __slots__ = 'prefix', 'schema'

    prefix: str | None
    schema: str | None

    def __new__(cls, namespace: str, /, *, prefix: str | None = None, schema: str | None = None) -> Self:
        self = super().__new__(cls, namespace)
        self.prefix = prefix
        self.schema = schema
        return self

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}({super().__repr__()}, prefix={self.prefix!r}, schema={self.schema!r})'

    def __setattr__(self, name: str, value: object, /) -> None:
        if name in self.__slots__ and hasattr(self, name):
            raise AttributeError(f'{self.__class__.__name__} object attribute {name!r} is read-only')
        return super().__setattr__(name, value)


class Wildcard(Flag):
    """Which kind of foreign content an element accepts (xs:any and xs:anyAttribute)"""

    NONE = 0
    ELEMENTS = auto()
    ATTRIBUTES = auto()


# Extension content

@dataclass(frozen=True)
class XMLAttribute:
    namespace: str
    name: str
    value: str
    prefix: str | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if not self.namespace:
            raise ValueError(f'extension attribute {self.name!r} must be namespace qualified')

    @property
    def tag(self) -> str:
        return f'{{{self.namespace}}}{self.name}'

    @property
    def qualname(self) -> str:
        return f'{self.prefix}:{self.name}' if self.prefix is not None else self.name


class Chunk:
    """An XML element captured verbatim and kept opaque"""

    __slots__ = ('xml',)

    xml: ETreeElement

    def __init__(self, element: ETreeElement) -> None:
        if not isinstance(element.tag, str):
            raise TypeError(f'a {self.__class__.__name__} can only hold XML elements, not {element!r}')
        self.xml = deepcopy(element)
        self.xml.tail = None

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}({etree.tostring(self.xml, encoding="unicode")!r})'

    def __str__(self) -> str:
        return etree.tostring(self.xml, encoding='unicode')

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Chunk):
            return self.canonical_form == other.canonical_form
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.canonical_form)

    def __reduce__(self) -> tuple[object, ...]:
        return self.__class__.from_string, (etree.tostring(self.xml),)

    @classmethod
    def from_string(cls, data: str | bytes) -> Self:
        return cls(parse_string(data))

    @property
    def namespace_uri(self) -> str | None:
        return etree.QName(self.xml).namespace

    @property
    def local_name(self) -> str:
        return etree.QName(self.xml).localname

    @property
    def prefix(self) -> str | None:
        return self.xml.prefix

    @property
    def qualname(self) -> str:
        return f'{self.prefix}:{self.local_name}' if self.prefix is not None else self.local_name

    @property
    def canonical_form(self) -> bytes:
        return etree.tostring(self.xml, method='c14n', exclusive=True)

    def to_xml(self, parent: ETreeElement | None = None) -> ETreeElement:
        element = deepcopy(self.xml)
        if parent is not None:
            parent.append(element)
        return element


class ExtensionContainer:
    """
    Holds the foreign content of an element: child elements and namespaced
    attributes that are not part of the element's own vocabulary.

    Both sequences keep their insertion order and neither rejects duplicates.
    Content can be added until the owning element is serialized for the first
    time. The containers of parsed elements are frozen from the start.
    """

    __slots__ = '_attributes', '_children', '_frozen'

    def __init__(self, children: Iterable[Chunk] = (), attributes: Iterable[XMLAttribute] = ()) -> None:
        self._children: list[Chunk] = []
        self._attributes: list[XMLAttribute] = []
        self._frozen = False
        for chunk in children:
            self.add_child(chunk)
        for attribute in attributes:
            self.add_attribute(attribute)

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}(children={self._children!r}, attributes={self._attributes!r})'

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ExtensionContainer):
            return self._children == other._children and self._attributes == other._attributes
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    @property
    def children(self) -> tuple[Chunk, ...]:
        return tuple(self._children)

    @property
    def attributes(self) -> tuple[XMLAttribute, ...]:
        return tuple(self._attributes)

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def nsmap(self) -> NSMap:
        return {attribute.prefix: attribute.namespace for attribute in self._attributes if attribute.prefix is not None and attribute.namespace != XML_NAMESPACE}

    def add_child(self, chunk: Chunk) -> None:
        if not isinstance(chunk, Chunk):
            raise TypeError(f'extension children must be of type {Chunk.__qualname__}')
        if self._frozen:
            raise AssertionFailure('Extension content cannot be changed once the element was serialized or parsed')
        self._children.append(chunk)

    @overload
    def add_attribute(self, attribute: XMLAttribute, /) -> None: ...

    @overload
    def add_attribute(self, namespace: str, name: str, value: str, /, *, prefix: str | None = None) -> None: ...

    def add_attribute(self, *args: XMLAttribute | str, prefix: str | None = None) -> None:
        match args:
            case (XMLAttribute() as attribute,):
                pass
            case (str(namespace), str(name), str(value)):
                attribute = XMLAttribute(namespace, name, value, prefix=prefix)
            case _:
                raise TypeError('add_attribute expects either an XMLAttribute or the namespace, name and value strings')
        if self._frozen:
            raise AssertionFailure('Extension content cannot be changed once the element was serialized or parsed')
        self._attributes.append(attribute)

    def is_empty(self) -> bool:
        return not self._children and not self._attributes

    def freeze(self) -> None:
        self._frozen = True

    def to_xml(self, parent: ETreeElement) -> ETreeElement:
        for attribute in self._attributes:
            parent.set(attribute.tag, attribute.value)
        for chunk in self._children:
            chunk.to_xml(parent)
        return parent

    @classmethod
    def from_xml(cls, element: ETreeElement, known_tags: Iterable[str], *, children: bool = True, attributes: bool = True) -> Self:
        known_tags = frozenset(known_tags)
        container = cls()
        if attributes:
            prefixes = {namespace: prefix for prefix, namespace in element.nsmap.items()}
            prefixes[XML_NAMESPACE] = 'xml'
            for name, value in element.attrib.items():
                qname = etree.QName(name)
                if qname.namespace is not None and name not in known_tags:
                    container._attributes.append(XMLAttribute(qname.namespace, qname.localname, value, prefix=prefixes.get(qname.namespace)))
        if children:
            container._children.extend(Chunk(child) for child in element.iterchildren(etree.Element) if child.tag not in known_tags)
        container._frozen = True
        return container


# Elements

class XMLElement:
    # Element configuration, normally given as class parameters:
    #
    #   class Company(MDElement, name='Company', wildcard=Wildcard.NONE, nsmap={...}):
    #
    # The sunder names keep them apart from the attribute and element fields of the SAML types.

    _name_: ClassVar[str | None] = None
    _namespace_: ClassVar[Namespace | None] = None
    _wildcard_: ClassVar[Wildcard] = Wildcard.NONE
    _extra_nsmap_: ClassVar[NSMap] = {}
    _reserved_tags_: ClassVar[frozenset[str]] = frozenset()  # tags handled outside the fields, never captured as extensions

    # Computed by __init_subclass__ and set per instance

    _values_: dict[str, object]
    _extension_content_: ExtensionContainer | None
    _xml_: ETreeElement | None

    _tag_: ClassVar[str | None] = None
    _qualname_: ClassVar[str | None] = None

    _fields_: ClassVar[dict[str, 'FieldDescriptor']] = {}
    _known_tags_: ClassVar[frozenset[str]] = frozenset()
    _nsmap_: ClassVar[NSMap | None] = None

    __signature__: ClassVar[Signature] = Signature()

    _all_arguments: ClassVar[frozenset[str]]
    _mandatory_arguments: ClassVar[frozenset[str]]

    def __new__(cls, **kw: object) -> Self:
        if cls._tag_ is None:
            raise TypeError(f'Cannot instantiate abstract class {cls.__qualname__!r} that does not specify a name and namespace')
        if not cls._all_arguments.issuperset(kw):
            raise TypeError(f'got an unexpected keyword argument {next(iter(set(kw) - cls._all_arguments))!r}')
        if not cls._mandatory_arguments.issubset(kw):
            raise TypeError(f'missing a required keyword argument {next(iter(cls._mandatory_arguments - set(kw)))!r}')
        return super().__new__(cls)

    def __init__(self, **kw: object) -> None:
        self._xml_ = None
        self._values_ = {}
        parameters = self.__signature__.parameters
        for name, descriptor in self._fields_.items():
            descriptor.init(self, kw.get(name, parameters[name].default))
        if self._wildcard_:
            children = cast(Iterable[Chunk], kw.get('extension_children', ()))
            attributes = cast(Iterable[XMLAttribute], kw.get('extension_attributes', ()))
            self._extension_content_ = ExtensionContainer(children=children, attributes=attributes)
        else:
            self._extension_content_ = None
        self._validate_()

    def __init_subclass__(cls, name: str | None = None, namespace: Namespace | None = None, wildcard: Wildcard | None = None, nsmap: NSMap | None = None, **kw: object) -> None:
        super().__init_subclass__(**kw)

        if name is not None:
            if '_name_' in cls.__dict__ and cls._name_ != name:
                raise TypeError(f'The name specified via class parameter and the "_name_" class attribute are different ({name!r} != {cls._name_!r})')
            cls._name_ = name
        if namespace is not None:
            if '_namespace_' in cls.__dict__ and cls._namespace_ != namespace:
                raise TypeError(f'The namespace specified via class parameter and the "_namespace_" class attribute are different ({namespace!r} != {cls._namespace_!r})')
            cls._namespace_ = namespace
        if wildcard is not None:
            cls._wildcard_ = wildcard
        if nsmap is not None:
            cls._extra_nsmap_ = cls._extra_nsmap_ | nsmap

        if cls._name_ is not None:
            if cls._namespace_ is not None:
                cls._tag_ = f'{{{cls._namespace_}}}{cls._name_}'
                cls._qualname_ = f'{cls._namespace_.prefix}:{cls._name_}' if cls._namespace_.prefix is not None else cls._name_
            else:
                cls._tag_ = cls._name_
                cls._qualname_ = cls._name_

        # inherited fields plus the ones declared on this class
        fields = cls._fields_ | {name: value for name, value in cls.__dict__.items() if isinstance(value, FieldDescriptor)}

        # the namespaces declared on this element: its own and those of its namespaced attributes
        namespaces = {cls._namespace_} if cls._namespace_ is not None else set()
        namespaces.update(field.xml_namespace for field in fields.values() if isinstance(field, Attribute | OptionalAttribute) and field.xml_namespace not in (None, XML_NAMESPACE))
        nsmap = {ns.prefix: ns for ns in sorted(namespaces)} | cls._extra_nsmap_  # type: ignore[union-attr]

        cls._fields_ = fields
        cls._known_tags_ = frozenset(field.xml_tag for field in fields.values() if field.xml_tag is not None) | cls._reserved_tags_
        cls._nsmap_ = nsmap or None

        parameters = [descriptor.signature_parameter for descriptor in fields.values()]
        if Wildcard.ELEMENTS in cls._wildcard_:
            parameters.append(Parameter(name='extension_children', kind=Parameter.KEYWORD_ONLY, annotation=Iterable[Chunk], default=()))
        if Wildcard.ATTRIBUTES in cls._wildcard_:
            parameters.append(Parameter(name='extension_attributes', kind=Parameter.KEYWORD_ONLY, annotation=Iterable[XMLAttribute], default=()))

        cls.__signature__ = Signature(parameters=parameters)
        cls._all_arguments = frozenset(cls.__signature__.parameters)
        cls._mandatory_arguments = frozenset(p.name for p in cls.__signature__.parameters.values() if p.default is Parameter.empty)

    def __repr__(self) -> str:
        arguments = ', '.join(f'{name}={value!r}' for name, value in self._values_.items() if value is not None and value != ())
        return f'{self.__class__.__qualname__}({arguments})'

    def __str__(self) -> str:
        return etree.tostring(self.to_xml(), encoding='unicode')

    def __eq__(self, other: object) -> bool:
        if type(other) is type(self):
            return self._values_ == other._values_ and self._extension_content_ == other._extension_content_  # type: ignore[attr-defined]
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __reduce__(self) -> tuple[object, ...]:
        return _restore_element, (self.__class__,), self.__getstate__()

    def __getstate__(self) -> dict[str, object]:
        return {
            'xml': etree.tostring(self._xml_, with_tail=False) if self._xml_ is not None else None,
            'values': self._values_,
            'extension_content': self._extension_content_,
        }

    def __setstate__(self, state: dict[str, object]) -> None:
        xml = cast(bytes | None, state['xml'])
        self._xml_ = parse_string(xml) if xml is not None else None
        self._values_ = cast(dict[str, object], state['values'])
        self._extension_content_ = cast(ExtensionContainer | None, state['extension_content'])

    @property
    def extension_content(self) -> ExtensionContainer | None:
        return self._extension_content_

    def _validate_(self) -> None:
        """Check the invariants that span multiple fields (runs for both constructed and parsed elements)"""

    def _build_nsmap_(self) -> NSMap | None:
        """The namespace declarations for the element being built"""
        extension_content = self._extension_content_
        if extension_content is not None and extension_content.nsmap:
            return extension_content.nsmap | (self._nsmap_ or {})
        return self._nsmap_

    def _freeze_(self) -> None:
        """Freeze the extension content of this element and of every element it contains"""
        if self._extension_content_ is not None:
            self._extension_content_.freeze()
        for value in self._values_.values():
            for item in value if isinstance(value, tuple) else (value,):
                if isinstance(item, XMLElement):
                    item._freeze_()

    def _build_(self, parent: ETreeElement | None) -> ETreeElement:
        extension_content = self._extension_content_
        nsmap = self._build_nsmap_()
        if parent is None:
            element = etree.Element(self._tag_, nsmap=nsmap)  # type: ignore[arg-type]  # lxml stubs are a mess
        else:
            element = etree.SubElement(parent, self._tag_, nsmap=nsmap)  # type: ignore[arg-type]
        for descriptor in self._fields_.values():
            descriptor.to_xml(self, element)
        if extension_content is not None:
            extension_content.to_xml(element)
            extension_content.freeze()
        return element

    def to_xml(self, parent: ETreeElement | None = None) -> ETreeElement:
        """Build a new etree element for this object, either standalone or as the last child of parent"""
        return self._build_(parent)

    def to_string(self, *, xml_declaration: bool = False, pretty_print: bool = False) -> bytes:
        return etree.tostring(self.to_xml(), xml_declaration=xml_declaration, encoding='UTF-8', pretty_print=pretty_print)

    def is_empty_element(self) -> bool:
        if self._extension_content_ is not None and not self._extension_content_.is_empty():
            return False
        return all(descriptor.is_empty(self) for descriptor in self._fields_.values())

    @classmethod
    def from_xml(cls, element: ETreeElement) -> Self:
        if cls._tag_ is None:
            raise TypeError(f'Cannot instantiate abstract class {cls.__qualname__} that does not specify a name and namespace')
        if element.tag != cls._tag_:
            raise TypeError(f'The etree element tag does not match the {cls.__qualname__} element tag: {element.tag!r} != {cls._tag_!r}')
        instance = super().__new__(cls)
        instance._xml_ = element
        instance._values_ = {}
        for descriptor in cls._fields_.values():
            descriptor.from_xml(instance)
        if cls._wildcard_:
            extension_content = ExtensionContainer.from_xml(element, cls._known_tags_, children=Wildcard.ELEMENTS in cls._wildcard_, attributes=Wildcard.ATTRIBUTES in cls._wildcard_)
            if not extension_content.is_empty():
                logger.debug('Captured %d extension children and %d extension attributes on %s', len(extension_content.children), len(extension_content.attributes), cls._qualname_)
            instance._extension_content_ = extension_content
        else:
            instance._extension_content_ = None
        instance._validate_()
        return instance

    @classmethod
    def from_string(cls, data: str | bytes) -> Self:
        return cls.from_xml(parse_string(data))

    @classmethod
    def from_file(cls, path: str | PathLike[str]) -> Self:
        return cls.from_xml(parse_file(path))


def _restore_element[E: XMLElement](cls: type[E]) -> E:
    return object.__new__(cls)


# Fields

class FieldDescriptor[F](ABC):
    name: str | None
    type: type[F]

    @property
    def xml_tag(self) -> str | None:
        """The tag (or attribute name) in Clark notation this field corresponds to, if any"""
        return None

    @property
    @abstractmethod
    def signature_parameter(self) -> Parameter:
        raise NotImplementedError

    def __set_name__(self, owner: type[XMLElement], name: str) -> None:
        if not issubclass(owner, XMLElement):  # static type analysis does not catch this
            raise TypeError(f'Can only use {self.__class__.__qualname__} descriptors on XMLElement objects')
        if self.name is None:
            self.name = name
        elif name != self.name:
            raise TypeError(f'cannot assign the same {self.__class__.__name__} descriptor to two different names: {self.name} and {name}')

    def __set__(self, instance: XMLElement, value: object) -> None:
        raise AttributeError(f'cannot set {self.name!r}: {instance._qualname_} elements are immutable')

    def __delete__(self, instance: XMLElement) -> None:
        raise AttributeError(f'cannot delete {self.name!r}: {instance._qualname_} elements are immutable')

    @abstractmethod
    def init(self, instance: XMLElement, value: object) -> None:
        """Validate a constructor argument and store it as the instance's field value"""
        raise NotImplementedError

    @abstractmethod
    def from_xml(self, instance: XMLElement) -> None:
        """Fill in the instance's field value from its corresponding etree element"""
        raise NotImplementedError

    @abstractmethod
    def to_xml(self, instance: XMLElement, element: ETreeElement) -> None:
        """Add the instance's field value to the etree element being built"""
        raise NotImplementedError

    def is_empty(self, instance: XMLElement) -> bool:
        return instance._values_[self.name] in (None, (), '')  # type: ignore[index]


class DataFieldDescriptor[D: XMLData](FieldDescriptor[D], ABC):
    """A field whose value is converted to and from XML text through an adapter"""

    xml_build: Callable[[D], str]
    xml_parse: Callable[[str], D]

    adapter: DataAdapterType[D] | None

    kind: ClassVar[str] = 'value'

    def _setup_adapter(self, data_type: type[D], adapter: DataAdapterType[D] | None) -> None:
        self.type = data_type
        self.adapter = adapter

        if adapter is None:
            if issubclass(data_type, DataConverter):
                adapter = cast(DataAdapterType[D], data_type)  # A type that implements the DataConverter protocol is its own DataAdapter
            else:
                adapter = AdapterRegistry.get_adapter(data_type)

        if adapter is not None:
            self.xml_parse = adapter.xml_parse
            self.xml_build = adapter.xml_build
        else:
            assert not issubclass(data_type, bool | datetime | DataConverter)  # noqa: S101 (used by type checkers)
            self.xml_parse = data_type  # type: ignore[assignment]
            self.xml_build = str

    def convert(self, instance: XMLElement, value: object) -> D:
        """Validate a value provided by the application and normalize it to what its XML form represents"""
        if not isinstance(value, self.type):
            raise TypeError(f'the {self.name!r} {self.kind} must be of type {reprproxy(self.type)}')
        try:
            return self.xml_parse(self.xml_build(value))
        except ValueError as exc:
            raise SchemaViolationError(f'Invalid value for {self.kind} {self.name!r} of {instance._qualname_!r}: {exc!s}') from exc

    def parse(self, value: str, error: str) -> D:
        try:
            return self.xml_parse(value)
        except ValueError as exc:
            raise SchemaViolationError(f'{error}: {exc!s}') from exc


class Attribute[D: XMLData](DataFieldDescriptor[D]):
    kind = 'attribute'

    def __init__(self, data_type: type[D], /, *, name: str | None = None, namespace: Namespace | None = None, adapter: DataAdapterType[D] | None = None) -> None:
        self.name = None
        self.xml_name = name or ''
        self.xml_namespace = namespace
        self._setup_adapter(data_type, adapter)

    def __repr__(self) -> str:
        name = self.xml_name if self.xml_name != self.name else None
        adapter_name = self.adapter.__qualname__ if self.adapter else None
        return f'{self.__class__.__name__}({self.type.__qualname__}, {name=}, adapter={adapter_name})'

    def __set_name__(self, owner: type[XMLElement], name: str) -> None:
        super().__set_name__(owner, name)
        self.xml_name = self.xml_name or name

    @overload
    def __get__(self, instance: None, owner: type[XMLElement]) -> Self: ...

    @overload
    def __get__(self, instance: XMLElement, owner: type[XMLElement] | None = None) -> D: ...

    def __get__(self, instance: XMLElement | None, owner: type[XMLElement] | None = None) -> Self | D:
        if instance is None:
            return self
        return cast(D, instance._values_[self.name])  # type: ignore[index]

    @property
    def xml_tag(self) -> str:
        return f'{{{self.xml_namespace}}}{self.xml_name}' if self.xml_namespace is not None else self.xml_name

    @property
    def xml_qualname(self) -> str:
        if self.xml_namespace == XML_NAMESPACE:
            return f'xml:{self.xml_name}'
        return f'{self.xml_namespace.prefix}:{self.xml_name}' if self.xml_namespace is not None and self.xml_namespace.prefix is not None else self.xml_name

    @property
    def signature_parameter(self) -> Parameter:
        assert self.name is not None  # noqa: S101 (used by type checkers)
        return Parameter(name=self.name, kind=Parameter.KEYWORD_ONLY, annotation=self.type)

    def init(self, instance: XMLElement, value: object) -> None:
        instance._values_[self.name] = self.convert(instance, value)  # type: ignore[index]

    def from_xml(self, instance: XMLElement) -> None:
        value = instance._xml_.get(self.xml_tag)  # type: ignore[union-attr]
        if value is None:
            raise MissingAttributeError(self.xml_qualname, instance._qualname_)  # type: ignore[arg-type]
        instance._values_[self.name] = self.parse(value, f'Invalid value for attribute {self.xml_qualname!r} on {instance._qualname_!r}')  # type: ignore[index]

    def to_xml(self, instance: XMLElement, element: ETreeElement) -> None:
        element.set(self.xml_tag, self.xml_build(instance._values_[self.name]))  # type: ignore[index,arg-type]


class OptionalAttribute[D: XMLData](Attribute[D]):
    default: D | None

    def __init__(self, data_type: type[D], /, *, name: str | None = None, namespace: Namespace | None = None, default: D | None = None, adapter: DataAdapterType[D] | None = None) -> None:
        super().__init__(data_type, name=name, namespace=namespace, adapter=adapter)
        self.default = default

    def __repr__(self) -> str:
        name = self.xml_name if self.xml_name != self.name else None
        adapter_name = self.adapter.__qualname__ if self.adapter else None
        return f'{self.__class__.__name__}({self.type.__qualname__}, {name=}, default={self.default!r}, adapter={adapter_name})'

    @overload  # type: ignore[override]
    def __get__(self, instance: None, owner: type[XMLElement]) -> Self: ...

    @overload
    def __get__(self, instance: XMLElement, owner: type[XMLElement] | None = None) -> D | None: ...

    def __get__(self, instance: XMLElement | None, owner: type[XMLElement] | None = None) -> Self | D | None:
        if instance is None:
            return self
        value = instance._values_[self.name]  # type: ignore[index]
        return self.default if value is None else cast(D, value)

    @property
    def signature_parameter(self) -> Parameter:
        assert self.name is not None  # noqa: S101 (used by type checkers)
        return Parameter(name=self.name, kind=Parameter.KEYWORD_ONLY, annotation=self.type | None, default=None)

    def init(self, instance: XMLElement, value: object) -> None:
        instance._values_[self.name] = None if value is None else self.convert(instance, value)  # type: ignore[index]

    def from_xml(self, instance: XMLElement) -> None:
        value = instance._xml_.get(self.xml_tag)  # type: ignore[union-attr]
        instance._values_[self.name] = None if value is None else self.parse(value, f'Invalid value for attribute {self.xml_qualname!r} on {instance._qualname_!r}')  # type: ignore[index]

    def to_xml(self, instance: XMLElement, element: ETreeElement) -> None:
        value = instance._values_[self.name]  # type: ignore[index]
        if value is not None:
            element.set(self.xml_tag, self.xml_build(value))  # type: ignore[arg-type]


class Element[E: XMLElement](FieldDescriptor[E]):
    def __init__(self, element_type: type[E], /) -> None:
        if not (isinstance(element_type, type) and issubclass(element_type, XMLElement)):
            raise TypeError(f"element type must be a subclass of XMLElement, not '{type(element_type)}'")
        if element_type._tag_ is None:
            raise TypeError(f'{element_type.__qualname__!r} must specify a name and namespace to be usable as element type')
        self.name = None
        self.type = element_type

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}({self.type.__name__})'

    @overload
    def __get__(self, instance: None, owner: type[XMLElement]) -> Self: ...

    @overload
    def __get__(self, instance: XMLElement, owner: type[XMLElement] | None = None) -> E: ...

    def __get__(self, instance: XMLElement | None, owner: type[XMLElement] | None = None) -> Self | E:
        if instance is None:
            return self
        return cast(E, instance._values_[self.name])  # type: ignore[index]

    @property
    def xml_tag(self) -> str:
        return cast(str, self.type._tag_)

    @property
    def signature_parameter(self) -> Parameter:
        assert self.name is not None  # noqa: S101 (used by type checkers)
        return Parameter(name=self.name, kind=Parameter.KEYWORD_ONLY, annotation=self.type)

    def _check_type(self, value: object) -> E:
        if type(value) is not self.type:
            raise TypeError(f'the {self.name!r} element must be of type {self.type.__qualname__}')
        return cast(E, value)

    def _find_single(self, instance: XMLElement) -> ETreeElement | None:
        elements = [element for element in instance._xml_ if element.tag == self.type._tag_]  # type: ignore[union-attr]
        if len(elements) > 1:
            raise SchemaViolationError(f'Excess elements for {self.type._qualname_!r} in {instance._qualname_!r}')
        return elements[0] if elements else None

    def init(self, instance: XMLElement, value: object) -> None:
        instance._values_[self.name] = self._check_type(value)  # type: ignore[index]

    def from_xml(self, instance: XMLElement) -> None:
        element = self._find_single(instance)
        if element is None:
            raise MissingElementError(self.type._qualname_, instance._qualname_)  # type: ignore[arg-type]
        instance._values_[self.name] = self.type.from_xml(element)  # type: ignore[index]

    def to_xml(self, instance: XMLElement, element: ETreeElement) -> None:
        cast(E, instance._values_[self.name]).to_xml(element)  # type: ignore[index]


class OptionalElement[E: XMLElement](Element[E]):
    def __init__(self, element_type: type[E], /, *, omit_empty: bool = False) -> None:
        super().__init__(element_type)
        self.omit_empty = omit_empty

    @overload  # type: ignore[override]
    def __get__(self, instance: None, owner: type[XMLElement]) -> Self: ...

    @overload
    def __get__(self, instance: XMLElement, owner: type[XMLElement] | None = None) -> E | None: ...

    def __get__(self, instance: XMLElement | None, owner: type[XMLElement] | None = None) -> Self | E | None:
        if instance is None:
            return self
        return cast(E | None, instance._values_[self.name])  # type: ignore[index]

    @property
    def signature_parameter(self) -> Parameter:
        assert self.name is not None  # noqa: S101 (used by type checkers)
        return Parameter(name=self.name, kind=Parameter.KEYWORD_ONLY, annotation=self.type | None, default=None)

    def init(self, instance: XMLElement, value: object) -> None:
        instance._values_[self.name] = None if value is None else self._check_type(value)  # type: ignore[index]

    def from_xml(self, instance: XMLElement) -> None:
        element = self._find_single(instance)
        instance._values_[self.name] = None if element is None else self.type.from_xml(element)  # type: ignore[index]

    def is_empty(self, instance: XMLElement) -> bool:
        value = cast(E | None, instance._values_[self.name])  # type: ignore[index]
        return value is None or (self.omit_empty and value.is_empty_element())

    def to_xml(self, instance: XMLElement, element: ETreeElement) -> None:
        value = cast(E | None, instance._values_[self.name])  # type: ignore[index]
        if value is None:
            return
        if self.omit_empty and value.is_empty_element():
            value._freeze_()  # omitted elements count as serialized
        else:
            value.to_xml(element)


class MultiElement[E: XMLElement](Element[E]):
    def __init__(self, element_type: type[E], /, *, optional: bool = False, error: str | None = None) -> None:
        super().__init__(element_type)
        self.optional = optional
        self.error = error

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}({self.type.__name__}, optional={self.optional})'

    @overload  # type: ignore[override]
    def __get__(self, instance: None, owner: type[XMLElement]) -> Self: ...

    @overload
    def __get__(self, instance: XMLElement, owner: type[XMLElement] | None = None) -> tuple[E, ...]: ...

    def __get__(self, instance: XMLElement | None, owner: type[XMLElement] | None = None) -> Self | tuple[E, ...]:
        if instance is None:
            return self
        return cast(tuple[E, ...], instance._values_[self.name])  # type: ignore[index]

    @property
    def signature_parameter(self) -> Parameter:
        assert self.name is not None  # noqa: S101 (used by type checkers)
        return Parameter(name=self.name, kind=Parameter.KEYWORD_ONLY, annotation=Iterable[self.type], default=() if self.optional else Parameter.empty)  # type: ignore[name-defined]

    def init(self, instance: XMLElement, value: object) -> None:
        elements = tuple(self._check_type(element) for element in cast(Iterable[object], value))
        if not elements and not self.optional:
            raise CardinalityError(self.error or f'the {self.name!r} element must have at least one item')
        instance._values_[self.name] = elements  # type: ignore[index]

    def from_xml(self, instance: XMLElement) -> None:
        elements = [element for element in instance._xml_ if element.tag == self.type._tag_]  # type: ignore[union-attr]
        if not elements and not self.optional:
            raise CardinalityError(self.error or f'There must be at least one {self.type._qualname_!r} element in {instance._qualname_!r}')
        instance._values_[self.name] = tuple(self.type.from_xml(element) for element in elements)  # type: ignore[index]

    def to_xml(self, instance: XMLElement, element: ETreeElement) -> None:
        for value in cast(tuple[E, ...], instance._values_[self.name]):  # type: ignore[index]
            value.to_xml(element)


class MultiDataElement[D: XMLData](DataFieldDescriptor[D]):
    kind = 'element'

    def __init__(self, data_type: type[D], /, *, namespace: Namespace | None = None, name: str | None = None, optional: bool = False, adapter: DataAdapterType[D] | None = None, error: str | None = None) -> None:
        self.name = None
        self.xml_name = name or ''
        self.xml_namespace = namespace
        self.optional = optional
        self.error = error
        self._setup_adapter(data_type, adapter)

    def __repr__(self) -> str:
        name = self.xml_name if self.xml_name != self.name else None
        adapter_name = self.adapter.__qualname__ if self.adapter else None
        return f'{self.__class__.__name__}({self.type.__name__}, namespace={self.xml_namespace!r}, {name=}, optional={self.optional!r}, adapter={adapter_name})'

    def __set_name__(self, owner: type[XMLElement], name: str) -> None:
        super().__set_name__(owner, name)
        self.xml_name = self.xml_name or name
        self.xml_namespace = self.xml_namespace or owner._namespace_

    @overload
    def __get__(self, instance: None, owner: type[XMLElement]) -> Self: ...

    @overload
    def __get__(self, instance: XMLElement, owner: type[XMLElement] | None = None) -> tuple[D, ...]: ...

    def __get__(self, instance: XMLElement | None, owner: type[XMLElement] | None = None) -> Self | tuple[D, ...]:
        if instance is None:
            return self
        return cast(tuple[D, ...], instance._values_[self.name])  # type: ignore[index]

    @property
    def xml_tag(self) -> str:
        return f'{{{self.xml_namespace}}}{self.xml_name}' if self.xml_namespace is not None else self.xml_name

    @property
    def xml_qualname(self) -> str:
        return f'{self.xml_namespace.prefix}:{self.xml_name}' if self.xml_namespace is not None and self.xml_namespace.prefix is not None else self.xml_name

    @property
    def signature_parameter(self) -> Parameter:
        assert self.name is not None  # noqa: S101 (used by type checkers)
        return Parameter(name=self.name, kind=Parameter.KEYWORD_ONLY, annotation=Iterable[self.type], default=() if self.optional else Parameter.empty)  # type: ignore[name-defined]

    def init(self, instance: XMLElement, value: object) -> None:
        if isinstance(value, str | bytes):
            raise TypeError(f'the {self.name!r} element expects an iterable of {reprproxy(self.type)}, not a single {type(value).__name__}')
        values = tuple(self.convert(instance, item) for item in cast(Iterable[object], value))
        if not values and not self.optional:
            raise CardinalityError(self.error or f'the {self.name!r} element must have at least one item')
        instance._values_[self.name] = values  # type: ignore[index]

    def from_xml(self, instance: XMLElement) -> None:
        elements = [element for element in instance._xml_ if element.tag == self.xml_tag]  # type: ignore[union-attr]
        if not elements and not self.optional:
            raise CardinalityError(self.error or f'There must be at least one {self.xml_qualname!r} element in {instance._qualname_!r}')
        instance._values_[self.name] = tuple(self.parse(element.text or '', f'Invalid value for element {self.xml_qualname!r} in {instance._qualname_!r}') for element in elements)  # type: ignore[index]

    def to_xml(self, instance: XMLElement, element: ETreeElement) -> None:
        for value in cast(tuple[D, ...], instance._values_[self.name]):  # type: ignore[index]
            etree.SubElement(element, self.xml_tag).text = self.xml_build(value)


class TextValue[D: XMLData](DataFieldDescriptor[D]):
    """An XMLElement descriptor used to access the text value of its element"""

    kind = 'text value'

    def __init__(self, data_type: type[D], /, adapter: DataAdapterType[D] | None = None) -> None:
        self.name = None
        self._setup_adapter(data_type, adapter)

    def __repr__(self) -> str:
        adapter_name = self.adapter.__qualname__ if self.adapter else None
        return f'{self.__class__.__name__}({self.type.__qualname__}, adapter={adapter_name})'

    @overload
    def __get__(self, instance: None, owner: type[XMLElement]) -> Self: ...

    @overload
    def __get__(self, instance: XMLElement, owner: type[XMLElement] | None = None) -> D: ...

    def __get__(self, instance: XMLElement | None, owner: type[XMLElement] | None = None) -> Self | D:
        if instance is None:
            return self
        return cast(D, instance._values_[self.name])  # type: ignore[index]

    @property
    def signature_parameter(self) -> Parameter:
        assert self.name is not None  # noqa: S101 (used by type checkers)
        return Parameter(name=self.name, kind=Parameter.KEYWORD_ONLY, annotation=self.type)

    def init(self, instance: XMLElement, value: object) -> None:
        instance._values_[self.name] = self.convert(instance, value)  # type: ignore[index]

    def from_xml(self, instance: XMLElement) -> None:
        instance._values_[self.name] = self.parse(instance._xml_.text or '', f'Invalid text value for element {instance._qualname_!r}')  # type: ignore[index,union-attr]

    def to_xml(self, instance: XMLElement, element: ETreeElement) -> None:
        element.text = self.xml_build(instance._values_[self.name])  # type: ignore[index,arg-type]


field_specifiers = (Attribute, OptionalAttribute, Element, OptionalElement, MultiElement, MultiDataElement, TextValue)


@dataclass_transform(kw_only_default=True, field_specifiers=field_specifiers)  # type: ignore[misc]
class AnnotatedXMLElement(XMLElement):
    """
    XMLElement for definitions that also annotate their fields.

    The SAML vocabularies declare each field twice, once as an annotation and
    once as the descriptor that binds it to XML:

      algorithm: Attribute[str] = Attribute(str, name='Algorithm', adapter=AnyURIAdapter)
      members: MultiElement[AffiliateMember] = MultiElement(AffiliateMember)

    The annotations are only read by type checkers, which then know the keyword
    arguments an element accepts. At runtime the descriptors alone define the
    element, exactly as they do on a plain XMLElement.
    """


del field_specifiers
