# SPDX-FileCopyrightText: 2024-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

from os import PathLike
from pathlib import Path
from typing import Self

from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.hazmat.primitives.asymmetric.ec import EllipticCurvePrivateKey, EllipticCurvePublicKey
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, RSAPublicKey
from cryptography.hazmat.primitives.serialization import (
    BestAvailableEncryption,
    Encoding,
    NoEncryption,
    PrivateFormat,
    PublicFormat,
    load_pem_private_key,
    load_pem_public_key,
)
from signxml import SignatureMethod

from samlxml.constants import SIG_ECDSA_SHA256, SIG_RSA_SHA256
from samlxml.python import MarkerEnum, atomic_write, reprproxy

__all__ = 'KeyType', 'PrivateKey', 'PublicKey', 'load_private_key', 'load_public_key', 'public_key_of', 'save_private_key', 'save_public_key'


type PrivateKey = RSAPrivateKey | EllipticCurvePrivateKey
type PublicKey = RSAPublicKey | EllipticCurvePublicKey


class KeyType(MarkerEnum):
    """The kinds of keys that can sign SAML documents"""

    RSA = 'RSA'
    ECDSA = 'ECDSA'

    @classmethod
    def of(cls, key: PrivateKey | PublicKey) -> Self:
        match key:
            case RSAPrivateKey() | RSAPublicKey():
                return cls.RSA
            case EllipticCurvePrivateKey() | EllipticCurvePublicKey():
                return cls.ECDSA
            case _:
                raise TypeError(f'Unsupported key type: {key.__class__.__qualname__!r}')

    @property
    def signature_algorithm(self) -> str:
        """The signature method used by default with this kind of key"""
        match self:
            case KeyType.RSA:
                return SIG_RSA_SHA256
            case KeyType.ECDSA:
                return SIG_ECDSA_SHA256

    @property
    def signature_methods(self) -> frozenset[str]:
        """The signature method URIs that can be used with this kind of key"""
        match self:
            case KeyType.RSA:
                return frozenset(method.value for method in SignatureMethod if method.name.startswith('RSA_'))
            case KeyType.ECDSA:
                return frozenset(method.value for method in SignatureMethod if method.name.startswith('ECDSA_'))

    def generate(self, *, key_size: int = 2048) -> PrivateKey:
        """Generate a new private key. The key_size only applies to RSA keys."""
        match self:
            case KeyType.RSA:
                return rsa.generate_private_key(public_exponent=65537, key_size=key_size)
            case KeyType.ECDSA:
                return ec.generate_private_key(ec.SECP256R1())


def public_key_of(key: PrivateKey | PublicKey) -> PublicKey:
    match key:
        case RSAPublicKey() | EllipticCurvePublicKey():
            return key
        case RSAPrivateKey() | EllipticCurvePrivateKey():
            return key.public_key()
        case _:
            raise TypeError(f'Unsupported key type: {key.__class__.__qualname__!r}')


def load_private_key(path: str | PathLike[str], *, password: str | None = None) -> PrivateKey:
    key = load_pem_private_key(Path(path).expanduser().read_bytes(), password=password.encode() if password is not None else None)
    if not isinstance(key, RSAPrivateKey | EllipticCurvePrivateKey):
        raise TypeError(f'Unsupported private key in {path}: {key.__class__.__qualname__!r} (expected {reprproxy(PrivateKey)})')
    return key


def load_public_key(path: str | PathLike[str]) -> PublicKey:
    key = load_pem_public_key(Path(path).expanduser().read_bytes())
    if not isinstance(key, RSAPublicKey | EllipticCurvePublicKey):
        raise TypeError(f'Unsupported public key in {path}: {key.__class__.__qualname__!r} (expected {reprproxy(PublicKey)})')
    return key


def save_private_key(key: PrivateKey, path: str | PathLike[str], *, password: str | None = None) -> None:
    encryption = BestAvailableEncryption(password.encode()) if password is not None else NoEncryption()
    atomic_write(path, key.private_bytes(Encoding.PEM, PrivateFormat.PKCS8, encryption), mode=0o600)


def save_public_key(key: PrivateKey | PublicKey, path: str | PathLike[str]) -> None:
    atomic_write(path, public_key_of(key).public_bytes(Encoding.PEM, PublicFormat.SubjectPublicKeyInfo), mode=0o644)
