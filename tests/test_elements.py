# SPDX-FileCopyrightText: 2020-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

import re
from datetime import UTC, datetime

import pytest
from lxml import etree

from samlxml.constants import NAMEID_ENTITY, NS_ALG, NS_MDUI, NS_SAML, NS_XS, NS_XSI, SIG_RSA_SHA256
from samlxml.elements.alg import DigestMethod, SigningMethod
from samlxml.elements.mdui import DiscoHints, DomainHint, GeolocationHint, IPHint, KeywordListAdapter, Keywords
from samlxml.elements.saml import (
    Action,
    Attribute,
    AttributeStatement,
    AttributeValue,
    AuthzDecisionStatement,
    Decision,
    Evidence,
    Issuer,
    SchemaType,
    SubjectLocality,
)
from samlxml.xml import Chunk
from samlxml.xml.exceptions import AssertionFailure, CardinalityError, MissingAttributeError, SchemaViolationError

SSP_NS = 'urn:x-simplesamlphp:namespace'
CHUNK = f'<ssp:Chunk xmlns:ssp="{SSP_NS}">Some</ssp:Chunk>'


class TestIssuer:

    def test_marshalling(self) -> None:
        issuer = Issuer(
            value='TheIssuerValue',
            name_qualifier='TheNameQualifier',
            sp_name_qualifier='TheSPNameQualifier',
            format='urn:the:format',
            sp_provided_id='TheSPProvidedID',
        )
        assert str(issuer) == (
            f'<saml:Issuer xmlns:saml="{NS_SAML}" NameQualifier="TheNameQualifier" SPNameQualifier="TheSPNameQualifier" Format="urn:the:format" SPProvidedID="TheSPProvidedID">'
            'TheIssuerValue'
            '</saml:Issuer>'
        )
        assert Issuer.from_xml(issuer.to_xml()) == issuer

        issuer = Issuer(value='https://idp.example.org')
        assert str(issuer) == f'<saml:Issuer xmlns:saml="{NS_SAML}">https://idp.example.org</saml:Issuer>'
        assert Issuer(value='https://idp.example.org', format=NAMEID_ENTITY).format == NAMEID_ENTITY

    def test_illegal_combination(self) -> None:
        with pytest.raises(AssertionFailure, match=r'Illegal combination of attributes being used'):
            Issuer(value='TheIssuerValue', format=NAMEID_ENTITY, name_qualifier='TheNameQualifier')

        with pytest.raises(AssertionFailure, match=r'Illegal combination of attributes being used'):
            Issuer(value='TheIssuerValue', sp_provided_id='TheSPProvidedID')

        with pytest.raises(AssertionFailure, match=r'Illegal combination of attributes being used'):
            Issuer.from_string(f'<saml:Issuer xmlns:saml="{NS_SAML}" Format="{NAMEID_ENTITY}" SPNameQualifier="TheSPNameQualifier">TheIssuerValue</saml:Issuer>')

    def test_unmarshalling(self) -> None:
        issuer = Issuer.from_string(f'<saml:Issuer xmlns:saml="{NS_SAML}" Format="urn:the:format" NameQualifier="TheNameQualifier">TheIssuerValue</saml:Issuer>')
        assert issuer.value == 'TheIssuerValue'
        assert issuer.format == 'urn:the:format'
        assert issuer.name_qualifier == 'TheNameQualifier'
        assert issuer.sp_name_qualifier is None

        with pytest.raises(SchemaViolationError, match=r'Invalid text value for element .+'):
            Issuer.from_string(f'<saml:Issuer xmlns:saml="{NS_SAML}"/>')

        with pytest.raises(SchemaViolationError, match=r"Invalid value for attribute 'Format'"):
            Issuer.from_string(f'<saml:Issuer xmlns:saml="{NS_SAML}" Format="not a uri">TheIssuerValue</saml:Issuer>')


class TestSubjectLocality:

    def test_subject_locality(self) -> None:
        locality = SubjectLocality(address='192.0.2.1', dns_name='idp.example.org')
        assert str(locality) == f'<saml:SubjectLocality xmlns:saml="{NS_SAML}" Address="192.0.2.1" DNSName="idp.example.org"/>'
        assert SubjectLocality.from_string(str(locality)) == locality

        empty = SubjectLocality()
        assert empty.is_empty_element()
        assert str(empty) == f'<saml:SubjectLocality xmlns:saml="{NS_SAML}"/>'
        assert SubjectLocality.from_string(str(empty)) == empty

        with pytest.raises(SchemaViolationError):
            SubjectLocality(address='')


class TestAttributes:

    def test_attribute_value_types(self) -> None:
        instant = datetime(2009, 2, 13, 23, 31, 30, tzinfo=UTC)
        xsi_type = f'{{{NS_XSI}}}type'

        for value, schema_type, text in [('text', 'xs:string', 'text'), (True, 'xs:boolean', 'true'), (17, 'xs:integer', '17'), (instant, 'xs:dateTime', '2009-02-13T23:31:30Z')]:
            attribute_value = AttributeValue(value=value)
            xml = attribute_value.to_xml()
            assert xml.get(xsi_type) == schema_type
            assert xml.text == text
            assert xml.nsmap == {'saml': NS_SAML, 'xs': NS_XS, 'xsi': NS_XSI}
            parsed = AttributeValue.from_xml(xml)
            assert parsed.value == value
            assert type(parsed.value) is type(value)

        with pytest.raises(TypeError, match=r'the .+? text value must be of type str \| bool \| int \| datetime'):
            AttributeValue(value=1.5)  # pyright: ignore[reportArgumentType]

    def test_attribute_value_parsing(self) -> None:
        namespaces = f'xmlns:saml="{NS_SAML}" xmlns:xs="{NS_XS}" xmlns:xsi="{NS_XSI}"'

        assert AttributeValue.from_string(f'<saml:AttributeValue {namespaces}>text</saml:AttributeValue>').value == 'text'
        assert AttributeValue.from_string(f'<saml:AttributeValue {namespaces} xsi:type="xs:integer"> 42 </saml:AttributeValue>').value == 42
        assert AttributeValue.from_string(f'<saml:AttributeValue {namespaces} xsi:type="xs:boolean">0</saml:AttributeValue>').value is False

        # the prefix bound to the XML Schema namespace is what matters, not its name
        value = AttributeValue.from_string(f'<saml:AttributeValue xmlns:saml="{NS_SAML}" xmlns:xsd="{NS_XS}" xmlns:xsi="{NS_XSI}" xsi:type="xsd:integer">7</saml:AttributeValue>')
        assert value.value == 7

        # values of other types are kept as text
        assert AttributeValue.from_string(f'<saml:AttributeValue {namespaces} xsi:type="xs:decimal">1.5</saml:AttributeValue>').value == '1.5'
        assert AttributeValue.from_string(f'<saml:AttributeValue {namespaces} xmlns:x="urn:x" xsi:type="x:integer">1.5</saml:AttributeValue>').value == '1.5'

        with pytest.raises(SchemaViolationError, match=r'Invalid value for xs:integer'):
            AttributeValue.from_string(f'<saml:AttributeValue {namespaces} xsi:type="xs:integer">many</saml:AttributeValue>')

    def test_attribute_value_schema_types_are_kept(self) -> None:
        namespaces = f'xmlns:saml="{NS_SAML}" xmlns:xs="{NS_XS}" xmlns:xsi="{NS_XSI}"'
        xsi_type = f'{{{NS_XSI}}}type'

        value = AttributeValue.from_string(f'<saml:AttributeValue {namespaces} xsi:type="xs:anyURI">urn:example:value</saml:AttributeValue>')
        assert value.value == 'urn:example:value'
        assert value.xsi_type == SchemaType(NS_XS, 'anyURI')
        assert value.to_xml().get(xsi_type) == 'xs:anyURI'
        assert AttributeValue.from_xml(value.to_xml()) == value

        # a value without xsi:type does not gain one
        untyped = AttributeValue.from_string(f'<saml:AttributeValue {namespaces}>text</saml:AttributeValue>')
        assert untyped.xsi_type is None
        assert untyped.to_xml().get(xsi_type) is None
        assert untyped != AttributeValue(value='text')
        assert untyped == AttributeValue(value='text', xsi_type=None)

        # types from other namespaces are emitted with their namespace declared
        custom = AttributeValue.from_string(f'<saml:AttributeValue {namespaces} xmlns:x="urn:x" xsi:type="x:integer">1.5</saml:AttributeValue>')
        assert custom.xsi_type == SchemaType('urn:x', 'integer')
        xml = custom.to_xml()
        assert xml.get(xsi_type) == 'x:integer'
        assert xml.nsmap['x'] == 'urn:x'
        assert AttributeValue.from_xml(xml) == custom

        # the prefix does not take part in comparisons
        assert AttributeValue.from_string(f'<saml:AttributeValue xmlns:saml="{NS_SAML}" xmlns:xsd="{NS_XS}" xmlns:xsi="{NS_XSI}" xsi:type="xsd:string">text</saml:AttributeValue>') == AttributeValue(value='text')

        assert AttributeValue(value='urn:example:value', xsi_type=SchemaType(NS_XS, 'anyURI')).to_xml().get(xsi_type) == 'xs:anyURI'

        with pytest.raises(AssertionFailure, match=r'A int value cannot be used as an untyped attribute value'):
            AttributeValue(value=5, xsi_type=None)

        with pytest.raises(AssertionFailure, match=r'A str value cannot be used as an xs:integer attribute value'):
            AttributeValue(value='5', xsi_type=SchemaType(NS_XS, 'integer', prefix='xs'))

        with pytest.raises(SchemaViolationError, match=r'Undeclared namespace prefix'):
            AttributeValue.from_string(f'<saml:AttributeValue {namespaces} xsi:type="y:integer">1</saml:AttributeValue>')

    def test_attribute(self) -> None:
        attribute = Attribute(name='urn:oid:2.5.4.3', name_format='urn:oasis:names:tc:SAML:2.0:attrname-format:uri', friendly_name='cn', values=[AttributeValue(value='Jane Doe')])
        xml = attribute.to_xml()
        assert xml.get('Name') == 'urn:oid:2.5.4.3'
        assert xml.get('FriendlyName') == 'cn'
        assert xml[0].text == 'Jane Doe'
        assert Attribute.from_xml(xml) == attribute

        assert Attribute(name='urn:x-simplesamlphp:attribute').values == ()

        with pytest.raises(TypeError, match=r'missing a required keyword argument .+'):
            Attribute(friendly_name='cn')  # pyright: ignore[reportCallIssue]

        with pytest.raises(MissingAttributeError, match=re.escape("Missing 'Name' attribute on saml:Attribute.")):
            Attribute.from_string(f'<saml:Attribute xmlns:saml="{NS_SAML}"/>')

        # foreign attributes are preserved
        attribute = Attribute.from_string(f'<saml:Attribute xmlns:saml="{NS_SAML}" xmlns:ssp="{SSP_NS}" Name="TheName" ssp:attr1="value1"/>')
        assert attribute.extension_content is not None
        assert [(item.qualname, item.value) for item in attribute.extension_content.attributes] == [('ssp:attr1', 'value1')]
        assert attribute.to_xml().get(f'{{{SSP_NS}}}attr1') == 'value1'

    def test_attribute_statement(self) -> None:
        statement = AttributeStatement(
            attributes=[
                Attribute(name='urn:test:ServiceID', values=[AttributeValue(value=1)]),
                Attribute(name='urn:test:EntityConcernedID', values=[AttributeValue(value=1)]),
                Attribute(name='urn:test:EntityConcernedSubID', values=[AttributeValue(value=1)]),
            ],
        )

        xml = statement.to_xml()
        assert [child.get('Name') for child in xml] == ['urn:test:ServiceID', 'urn:test:EntityConcernedID', 'urn:test:EntityConcernedSubID']
        assert [child[0].get(f'{{{NS_XSI}}}type') for child in xml] == ['xs:integer'] * 3

        parsed = AttributeStatement.from_xml(xml)
        assert parsed == statement
        assert parsed.attributes[0].values[0].value == 1

        with pytest.raises(CardinalityError, match=r'List of attributes must not be empty\.'):
            AttributeStatement(attributes=[])

        with pytest.raises(CardinalityError, match=r'List of attributes must not be empty\.'):
            AttributeStatement.from_string(f'<saml:AttributeStatement xmlns:saml="{NS_SAML}"/>')


class TestAuthorizationDecisions:

    def test_authz_decision_statement(self) -> None:
        statement = AuthzDecisionStatement(
            resource='urn:x-simplesamlphp:resource',
            decision=Decision.PERMIT,
            actions=[Action(namespace=SSP_NS, value='SomeAction'), Action(namespace=SSP_NS, value='OtherAction')],
            evidence=Evidence(assertion_id_refs=['_123'], assertion_uri_refs=['urn:x-simplesamlphp:reference']),
        )
        assert str(statement) == (
            f'<saml:AuthzDecisionStatement xmlns:saml="{NS_SAML}" Resource="urn:x-simplesamlphp:resource" Decision="Permit">'
            f'<saml:Action Namespace="{SSP_NS}">SomeAction</saml:Action>'
            f'<saml:Action Namespace="{SSP_NS}">OtherAction</saml:Action>'
            '<saml:Evidence>'
            '<saml:AssertionIDRef>_123</saml:AssertionIDRef>'
            '<saml:AssertionURIRef>urn:x-simplesamlphp:reference</saml:AssertionURIRef>'
            '</saml:Evidence>'
            '</saml:AuthzDecisionStatement>'
        )

        parsed = AuthzDecisionStatement.from_string(str(statement))
        assert parsed == statement
        assert parsed.decision is Decision.PERMIT

    def test_decision(self) -> None:
        assert Decision.xml_parse('Indeterminate') is Decision.INDETERMINATE
        assert Decision.DENY.xml_build() == 'Deny'

        with pytest.raises(TypeError, match=r"the 'decision' attribute must be of type Decision"):
            AuthzDecisionStatement(resource='urn:x-simplesamlphp:resource', decision='Permit', actions=[Action(namespace=SSP_NS, value='SomeAction')])  # pyright: ignore[reportArgumentType]

        with pytest.raises(SchemaViolationError, match=r"invalid value 'Maybe' for DecisionType"):
            AuthzDecisionStatement.from_string(
                f'<saml:AuthzDecisionStatement xmlns:saml="{NS_SAML}" Resource="urn:x-simplesamlphp:resource" Decision="Maybe">'
                f'<saml:Action Namespace="{SSP_NS}">SomeAction</saml:Action>'
                '</saml:AuthzDecisionStatement>',
            )

    def test_empty_actions(self) -> None:
        with pytest.raises(CardinalityError, match=r'List of actions must not be empty\.'):
            AuthzDecisionStatement(resource='urn:x-simplesamlphp:resource', decision=Decision.DENY, actions=[])

        with pytest.raises(CardinalityError, match=r'List of actions must not be empty\.'):
            AuthzDecisionStatement.from_string(f'<saml:AuthzDecisionStatement xmlns:saml="{NS_SAML}" Resource="urn:x-simplesamlphp:resource" Decision="Deny"/>')

    def test_evidence(self) -> None:
        assert Evidence(assertion_id_refs=['_123']).assertion_uri_refs == ()
        assert Evidence(assertion_uri_refs=['urn:x-simplesamlphp:reference']).assertion_id_refs == ()

        with pytest.raises(CardinalityError):
            Evidence()

        with pytest.raises(CardinalityError):
            Evidence.from_string(f'<saml:Evidence xmlns:saml="{NS_SAML}"/>')

        with pytest.raises(SchemaViolationError, match=r"Invalid value for element 'assertion_id_refs'"):
            Evidence(assertion_id_refs=['123'])

    def test_action(self) -> None:
        with pytest.raises(MissingAttributeError, match=re.escape("Missing 'Namespace' attribute on saml:Action.")):
            Action.from_string(f'<saml:Action xmlns:saml="{NS_SAML}">SomeAction</saml:Action>')

        with pytest.raises(SchemaViolationError):
            Action(namespace=SSP_NS, value='')


class TestAlgorithmSupport:

    def test_signing_method(self) -> None:
        signing_method = SigningMethod(algorithm=SIG_RSA_SHA256, min_key_size=1024, max_key_size=4096, extension_children=[Chunk.from_string(CHUNK)])
        assert str(signing_method) == (
            f'<alg:SigningMethod xmlns:alg="{NS_ALG}" Algorithm="{SIG_RSA_SHA256}" MinKeySize="1024" MaxKeySize="4096">'
            f'{CHUNK}'
            '</alg:SigningMethod>'
        )

        parsed = SigningMethod.from_string(str(signing_method))
        assert parsed == signing_method
        assert parsed.extension_content is not None
        assert parsed.extension_content.children == (Chunk.from_string(CHUNK),)

    def test_missing_algorithm(self) -> None:
        with pytest.raises(MissingAttributeError, match=re.escape("Missing 'Algorithm' attribute on alg:SigningMethod.")):
            SigningMethod.from_string(f'<alg:SigningMethod xmlns:alg="{NS_ALG}" MinKeySize="1024" MaxKeySize="4096"/>')

    def test_key_sizes(self) -> None:
        with pytest.raises(SchemaViolationError, match=r'invalid value .+? for positive integer'):
            SigningMethod(algorithm=SIG_RSA_SHA256, min_key_size=0)

        with pytest.raises(SchemaViolationError, match=r"Invalid value for attribute 'MaxKeySize'"):
            SigningMethod.from_string(f'<alg:SigningMethod xmlns:alg="{NS_ALG}" Algorithm="{SIG_RSA_SHA256}" MaxKeySize="big"/>')

        with pytest.raises(AssertionFailure, match=r'cannot be larger than MaxKeySize'):
            SigningMethod(algorithm=SIG_RSA_SHA256, min_key_size=4096, max_key_size=1024)

    def test_digest_method(self) -> None:
        digest_method = DigestMethod(algorithm='http://www.w3.org/2001/04/xmlenc#sha256')
        assert str(digest_method) == f'<alg:DigestMethod xmlns:alg="{NS_ALG}" Algorithm="http://www.w3.org/2001/04/xmlenc#sha256"/>'

        with pytest.raises(SchemaViolationError):
            DigestMethod(algorithm='')


class TestDiscoHints:

    hints = {
        'IPHint': ['130.59.0.0/16', '2001:620::0/96'],
        'DomainHint': ['example.com', 'www.example.com'],
        'GeolocationHint': ['geo:47.37328,8.531126', 'geo:19.34343,12.342514'],
    }

    def test_marshalling(self) -> None:
        disco_hints = DiscoHints(
            ip_hints=[IPHint(value='130.59.0.0/16'), IPHint(value='2001:620::0/96')],
            domain_hints=[DomainHint(value='example.com'), DomainHint(value='www.example.com')],
            geolocation_hints=[GeolocationHint(value='geo:47.37328,8.531126'), GeolocationHint(value='geo:19.34343,12.342514')],
        )
        assert [etree.QName(child).localname for child in disco_hints.to_xml()] == ['IPHint', 'IPHint', 'DomainHint', 'DomainHint', 'GeolocationHint', 'GeolocationHint']
        assert DiscoHints.from_string(str(disco_hints)) == disco_hints

    def test_dictionary_form(self) -> None:
        disco_hints = DiscoHints.from_dict(self.hints)

        assert disco_hints.to_dict() == self.hints
        assert [hint.value for hint in disco_hints.ip_hints] == self.hints['IPHint']
        assert [etree.QName(child).localname for child in disco_hints.to_xml()] == ['IPHint', 'IPHint', 'DomainHint', 'DomainHint', 'GeolocationHint', 'GeolocationHint']
        assert DiscoHints.from_string(str(disco_hints)).to_dict() == self.hints

        # hint types without values are left out
        assert DiscoHints.from_dict({'DomainHint': ['example.com']}).to_dict() == {'DomainHint': ['example.com']}
        assert DiscoHints().to_dict() == {}
        assert DiscoHints.from_dict({}) == DiscoHints()

        with pytest.raises(ValueError, match=r"Unknown mdui:DiscoHints hint types: 'Keywords'"):
            DiscoHints.from_dict({'Keywords': ['voorbeeld']})

        with pytest.raises(TypeError, match=r'must be given as a list of strings'):
            DiscoHints.from_dict({'IPHint': '130.59.0.0/16'})

        with pytest.raises(SchemaViolationError):
            DiscoHints.from_dict({'DomainHint': ['']})

    def test_empty(self) -> None:
        disco_hints = DiscoHints()
        assert disco_hints.is_empty_element()
        assert str(disco_hints) == f'<mdui:DiscoHints xmlns:mdui="{NS_MDUI}"/>'

    def test_builder_style_extensions(self) -> None:
        disco_hints = DiscoHints()
        assert disco_hints.extension_content is not None

        keywords = Keywords(lang='nl', keywords=('voorbeeld', 'specimen'))
        disco_hints.extension_content.add_child(Chunk(keywords.to_xml()))
        assert not disco_hints.is_empty_element()

        root = etree.Element('root')
        xml = disco_hints.to_xml(root)
        assert xml.getparent() is root
        assert len(xml) == 1
        assert etree.QName(xml[0]).localname == 'Keywords'
        assert xml[0].prefix == 'mdui'
        assert xml[0].text == 'voorbeeld+specimen'

        with pytest.raises(AssertionFailure, match=r'Extension content cannot be changed'):
            disco_hints.extension_content.add_child(Chunk.from_string(CHUNK))

    def test_unmarshalling_with_foreign_children(self) -> None:
        disco_hints = DiscoHints.from_string(
            f'<mdui:DiscoHints xmlns:mdui="{NS_MDUI}">'
            '<mdui:GeolocationHint>geo:47.37328,8.531126</mdui:GeolocationHint>'
            '<ssp:child1 xmlns:ssp="urn:custom:ssp">content of tag</ssp:child1>'
            '</mdui:DiscoHints>',
        )

        assert disco_hints.geolocation_hints == (GeolocationHint(value='geo:47.37328,8.531126'),)
        assert disco_hints.ip_hints == ()
        assert disco_hints.extension_content is not None
        assert disco_hints.extension_content.frozen

        children = disco_hints.extension_content.children
        assert len(children) == 1
        assert children[0].namespace_uri == 'urn:custom:ssp'
        assert children[0].qualname == 'ssp:child1'
        assert children[0].xml.text == 'content of tag'

        # foreign children are written back after the known ones
        xml = disco_hints.to_xml()
        assert [child.tag for child in xml] == [f'{{{NS_MDUI}}}GeolocationHint', '{urn:custom:ssp}child1']

    def test_invalid_hints(self) -> None:
        with pytest.raises(SchemaViolationError):
            IPHint(value='')

        with pytest.raises(SchemaViolationError, match=r'Invalid text value for element .+'):
            DiscoHints.from_string(f'<mdui:DiscoHints xmlns:mdui="{NS_MDUI}"><mdui:DomainHint>  </mdui:DomainHint></mdui:DiscoHints>')


class TestKeywords:

    def test_keywords(self) -> None:
        keywords = Keywords(lang='nl', keywords=('voorbeeld', 'specimen'))
        assert str(keywords) == f'<mdui:Keywords xmlns:mdui="{NS_MDUI}" xml:lang="nl">voorbeeld+specimen</mdui:Keywords>'

        parsed = Keywords.from_string(str(keywords))
        assert parsed == keywords
        assert parsed.keywords == ('voorbeeld', 'specimen')
        assert parsed.lang == 'nl'

    def test_invalid_keywords(self) -> None:
        with pytest.raises(SchemaViolationError, match=r'keywords cannot contain a "\+" character'):
            Keywords(lang='en', keywords=('one+two',))

        with pytest.raises(SchemaViolationError):
            Keywords(lang='en', keywords=())

        with pytest.raises(MissingAttributeError, match=re.escape("Missing 'xml:lang' attribute on mdui:Keywords.")):
            Keywords.from_string(f'<mdui:Keywords xmlns:mdui="{NS_MDUI}">voorbeeld+specimen</mdui:Keywords>')

        with pytest.raises(SchemaViolationError, match=r'Invalid text value for element .+'):
            Keywords.from_string(f'<mdui:Keywords xmlns:mdui="{NS_MDUI}" xml:lang="nl">voorbeeld++specimen</mdui:Keywords>')

    def test_keyword_list_adapter(self) -> None:
        assert KeywordListAdapter.xml_parse('a+b+c') == ('a', 'b', 'c')
        assert KeywordListAdapter.xml_build(('a', 'b')) == 'a+b'

        with pytest.raises(ValueError, match=r'cannot be empty'):
            KeywordListAdapter.xml_parse('')
