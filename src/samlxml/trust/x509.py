# SPDX-FileCopyrightText: 2024-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

import base64
from dataclasses import dataclass, field, fields
from datetime import UTC, datetime, timedelta
from os import PathLike
from pathlib import Path
from typing import assert_never

from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric.ec import EllipticCurvePrivateKey
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey
from cryptography.hazmat.primitives.serialization import Encoding
from cryptography.x509 import Certificate, CertificateBuilder, Name
from cryptography.x509.oid import NameOID

from samlxml.python import atomic_write

from .private import KeyType, PrivateKey

__all__ = 'Subject', 'certificate_from_base64', 'certificate_to_base64', 'load_certificate', 'save_certificate', 'self_signed_certificate'


@dataclass(kw_only=True)
class Subject:
    country: str | None = field(default=None, metadata={'OID': NameOID.COUNTRY_NAME})
    organization: str | None = field(default=None, metadata={'OID': NameOID.ORGANIZATION_NAME})
    organizational_unit: str | None = field(default=None, metadata={'OID': NameOID.ORGANIZATIONAL_UNIT_NAME})
    common_name: str | None = field(default=None, metadata={'OID': NameOID.COMMON_NAME})

    @property
    def name(self) -> Name:
        return Name(x509.NameAttribute(field.metadata['OID'], value) for field in fields(self) if (value := getattr(self, field.name)) is not None)


def self_signed_certificate(subject: Name, private_key: KeyType | PrivateKey = KeyType.RSA, *, days: int = 3650) -> tuple[PrivateKey, Certificate]:
    """Create the kind of certificate SAML entities publish in their metadata to carry a signing key"""
    if not subject:
        raise ValueError('The subject name must have at least one name attribute')
    if isinstance(private_key, KeyType):
        private_key = private_key.generate()

    public_key = private_key.public_key()
    start_date = datetime.now(tz=UTC)

    certificate = CertificateBuilder(
        issuer_name=subject,
        subject_name=subject,
        public_key=public_key,
        serial_number=x509.random_serial_number(),
        not_valid_before=start_date,
        not_valid_after=start_date + timedelta(days=days),
    ).add_extension(
        x509.BasicConstraints(ca=False, path_length=None),
        critical=True,
    ).add_extension(
        x509.SubjectKeyIdentifier.from_public_key(public_key),
        critical=False,
    ).sign(private_key, algorithm=_hash_algorithm(private_key))

    return private_key, certificate


def _hash_algorithm(key: PrivateKey) -> hashes.SHA256:
    """Return a hash algorithm that is suitable for signing with the key"""
    match key:
        case RSAPrivateKey() | EllipticCurvePrivateKey():
            return hashes.SHA256()
        case _:
            assert_never(key)


def certificate_to_base64(certificate: Certificate) -> str:
    """The DER encoding of the certificate, as carried by ds:X509Certificate"""
    return base64.b64encode(certificate.public_bytes(Encoding.DER)).decode('ascii')


def certificate_from_base64(data: str) -> Certificate:
    return x509.load_der_x509_certificate(base64.b64decode(''.join(data.split())))


def load_certificate(path: str | PathLike[str]) -> Certificate:
    return x509.load_pem_x509_certificate(Path(path).expanduser().read_bytes())


def save_certificate(certificate: Certificate, path: str | PathLike[str]) -> None:
    atomic_write(path, certificate.public_bytes(Encoding.PEM), mode=0o644)
