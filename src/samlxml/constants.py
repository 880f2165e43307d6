# SPDX-FileCopyrightText: 2020-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

"""URIs defined by the SAML 2.0, XML Signature and XML Schema specifications"""

# Namespaces

NS_MD = 'urn:oasis:names:tc:SAML:2.0:metadata'
NS_SAML = 'urn:oasis:names:tc:SAML:2.0:assertion'
NS_MDUI = 'urn:oasis:names:tc:SAML:metadata:ui'
NS_ALG = 'urn:oasis:names:tc:SAML:metadata:algsupport'
NS_XDSIG = 'http://www.w3.org/2000/09/xmldsig#'
NS_XS = 'http://www.w3.org/2001/XMLSchema'
NS_XSI = 'http://www.w3.org/2001/XMLSchema-instance'
NS_XML = 'http://www.w3.org/XML/1998/namespace'

# Name identifier formats

NAMEID_UNSPECIFIED = 'urn:oasis:names:tc:SAML:1.1:nameid-format:unspecified'
NAMEID_EMAIL_ADDRESS = 'urn:oasis:names:tc:SAML:1.1:nameid-format:emailAddress'
NAMEID_ENTITY = 'urn:oasis:names:tc:SAML:2.0:nameid-format:entity'
NAMEID_PERSISTENT = 'urn:oasis:names:tc:SAML:2.0:nameid-format:persistent'
NAMEID_TRANSIENT = 'urn:oasis:names:tc:SAML:2.0:nameid-format:transient'

# Attribute name formats

ATTRNAME_FORMAT_UNSPECIFIED = 'urn:oasis:names:tc:SAML:2.0:attrname-format:unspecified'
ATTRNAME_FORMAT_URI = 'urn:oasis:names:tc:SAML:2.0:attrname-format:uri'
ATTRNAME_FORMAT_BASIC = 'urn:oasis:names:tc:SAML:2.0:attrname-format:basic'

# Action namespaces

ACTION_NAMESPACE_RWEDC = 'urn:oasis:names:tc:SAML:1.0:action:rwedc'
ACTION_NAMESPACE_RWEDC_NEGATION = 'urn:oasis:names:tc:SAML:1.0:action:rwedc-negation'
ACTION_NAMESPACE_GHPP = 'urn:oasis:names:tc:SAML:1.0:action:ghpp'
ACTION_NAMESPACE_UNIX = 'urn:oasis:names:tc:SAML:1.0:action:unix'

# XML Signature algorithms

C14N_EXCLUSIVE_WITHOUT_COMMENTS = 'http://www.w3.org/2001/10/xml-exc-c14n#'
C14N_EXCLUSIVE_WITH_COMMENTS = 'http://www.w3.org/2001/10/xml-exc-c14n#WithComments'
C14N_INCLUSIVE_WITHOUT_COMMENTS = 'http://www.w3.org/TR/2001/REC-xml-c14n-20010315'
C14N_INCLUSIVE_WITH_COMMENTS = 'http://www.w3.org/TR/2001/REC-xml-c14n-20010315#WithComments'

XMLDSIG_ENVELOPED = 'http://www.w3.org/2000/09/xmldsig#enveloped-signature'

DIGEST_SHA256 = 'http://www.w3.org/2001/04/xmlenc#sha256'
DIGEST_SHA384 = 'http://www.w3.org/2001/04/xmldsig-more#sha384'
DIGEST_SHA512 = 'http://www.w3.org/2001/04/xmlenc#sha512'

SIG_RSA_SHA256 = 'http://www.w3.org/2001/04/xmldsig-more#rsa-sha256'
SIG_RSA_SHA384 = 'http://www.w3.org/2001/04/xmldsig-more#rsa-sha384'
SIG_RSA_SHA512 = 'http://www.w3.org/2001/04/xmldsig-more#rsa-sha512'
SIG_ECDSA_SHA256 = 'http://www.w3.org/2001/04/xmldsig-more#ecdsa-sha256'
SIG_ECDSA_SHA384 = 'http://www.w3.org/2001/04/xmldsig-more#ecdsa-sha384'

# Key descriptor uses

KEY_USE_SIGNING = 'signing'
KEY_USE_ENCRYPTION = 'encryption'

# Metadata limits

ENTITYID_MAX_LENGTH = 1024
