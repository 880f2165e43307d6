# SPDX-FileCopyrightText: 2024-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Enveloped XML signatures over single elements, made and checked by signxml.

Signatures reference the signed element by its ID attribute (or the whole
document when the element has none) and use exclusive canonicalization, as
SAML requires. The certificate used for verification always comes from the
engine configuration, never from the ds:KeyInfo carried by the document.
"""

import logging
from copy import deepcopy

from cryptography.hazmat.primitives.serialization import Encoding
from cryptography.x509 import Certificate
from lxml import etree
from signxml import CanonicalizationMethod, DigestAlgorithm, SignatureConfiguration, SignatureConstructionMethod, SignatureMethod, XMLSigner, XMLVerifier
from signxml.exceptions import SignXMLException

from samlxml.constants import C14N_EXCLUSIVE_WITHOUT_COMMENTS, DIGEST_SHA256, NS_XDSIG
from samlxml.xml import ETreeElement, detach
from samlxml.xml.signature import find_signature

from .private import KeyType, PrivateKey
from .x509 import Subject, self_signed_certificate

__all__ = 'XMLSignatureEngine', 'XMLSignatureError'


logger = logging.getLogger(__name__)


class XMLSignatureError(ValueError):
    """Raised for unsupported signature parameters or when a signature cannot be created"""


class XMLSignatureEngine:
    """
    Signs and verifies enveloped signatures.

    A private key is only needed for signing. Verification uses the public key
    in the certificate. When only a private key is provided, a self-signed
    certificate is created for it, which is then carried by the ds:KeyInfo of
    the signatures being made.
    """

    def __init__(
        self,
        private_key: PrivateKey | None = None,
        *,
        certificate: Certificate | None = None,
        signature_algorithm: str | None = None,
        digest_algorithm: str = DIGEST_SHA256,
        c14n_algorithm: str = C14N_EXCLUSIVE_WITHOUT_COMMENTS,
    ) -> None:
        if private_key is None and certificate is None:
            raise TypeError('XMLSignatureEngine needs at least one of private_key or certificate')
        if certificate is None:
            _, certificate = self_signed_certificate(Subject(common_name='SAML signing key').name, private_key)  # type: ignore[arg-type]
        elif private_key is not None and private_key.public_key() != certificate.public_key():
            raise ValueError('The private key does not match the certificate')

        key_type = KeyType.of(certificate.public_key())  # type: ignore[arg-type]
        configuration = SignatureConfiguration()

        c14n_method = _lookup(CanonicalizationMethod, c14n_algorithm, 'canonicalization method')
        if 'EXCLUSIVE' not in c14n_method.name:
            raise XMLSignatureError(f'Signatures can only be created with exclusive canonicalization, not {c14n_algorithm!r}')
        digest_method = _lookup(DigestAlgorithm, digest_algorithm, 'digest method')
        if digest_method not in configuration.digest_algorithms:
            raise XMLSignatureError(f'Unsupported digest method: {digest_algorithm!r}')
        signature_method = _lookup(SignatureMethod, signature_algorithm or key_type.signature_algorithm, 'signature method')
        if signature_method not in configuration.signature_methods:
            raise XMLSignatureError(f'Unsupported signature method: {signature_method.value!r}')
        if signature_method.value not in key_type.signature_methods:
            raise XMLSignatureError(f'The signature method {signature_method.value!r} cannot be used with a {key_type.name} key')

        self.private_key = private_key
        self.certificate: Certificate = certificate
        self.key_type = key_type
        self.signature_algorithm: str = signature_method.value
        self.digest_algorithm: str = digest_method.value
        self.c14n_algorithm: str = c14n_method.value

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}(key_type={self.key_type!r}, signature_algorithm={self.signature_algorithm!r}, signer={self.private_key is not None})'

    @property
    def certificate_pem(self) -> str:
        return self.certificate.public_bytes(Encoding.PEM).decode('ascii')

    def sign(self, element: ETreeElement) -> ETreeElement:
        """Sign the element and return the ds:Signature, leaving the element itself unchanged"""
        if self.private_key is None:
            raise XMLSignatureError('Cannot create signatures without a private key')

        signer = XMLSigner(
            method=SignatureConstructionMethod.enveloped,
            signature_algorithm=SignatureMethod(self.signature_algorithm),
            digest_algorithm=DigestAlgorithm(self.digest_algorithm),
            c14n_algorithm=CanonicalizationMethod(self.c14n_algorithm),
        )
        reference_id = element.get('ID')
        try:
            signed = signer.sign(deepcopy(element), key=self.private_key, cert=self.certificate_pem, reference_uri=f'#{reference_id}' if reference_id else None)
        except SignXMLException as exc:
            raise XMLSignatureError(f'Cannot sign {element.tag}: {exc!s}') from exc

        signature = find_signature(signed)
        if signature is None:
            raise XMLSignatureError(f'Signing {element.tag} did not produce an enveloped signature')
        detach(signature)
        return signature

    def verify(self, element: ETreeElement) -> bool:
        signature = find_signature(element)
        if signature is None:
            logger.warning('Cannot verify %s: the element does not carry an enveloped signature', element.tag)
            return False

        signature_method = signature.find(f'{{{NS_XDSIG}}}SignedInfo/{{{NS_XDSIG}}}SignatureMethod')
        algorithm = signature_method.get('Algorithm') if signature_method is not None else None
        if algorithm not in self.key_type.signature_methods:
            logger.warning('Cannot verify %s: the signature method %r cannot be used with a %s key', element.tag, algorithm, self.key_type.name)
            return False

        try:
            result = XMLVerifier().verify(etree.tostring(element), x509_cert=self.certificate, expect_config=SignatureConfiguration(location='./'))
        except SignXMLException as exc:
            logger.warning('XML signature verification failed for %s: %s', element.tag, exc)
            return False

        verified = result.signed_xml
        if verified is None or verified.tag != element.tag or verified.get('ID') != element.get('ID'):
            logger.warning('The signature on %s does not cover the element that carries it', element.tag)
            return False

        logger.debug('Verified the signature on %s', element.tag)
        return True


def _lookup[M: (CanonicalizationMethod, DigestAlgorithm, SignatureMethod)](method_type: type[M], algorithm: str, description: str) -> M:
    try:
        return method_type(algorithm)
    except (ValueError, SignXMLException):
        raise XMLSignatureError(f'Unsupported {description}: {algorithm!r}') from None
