# SPDX-FileCopyrightText: 2024-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

from .private import KeyType, load_private_key, load_public_key, save_private_key, save_public_key
from .x509 import Subject, load_certificate, save_certificate, self_signed_certificate
from .xmldsig import XMLSignatureEngine, XMLSignatureError

__all__ = 'KeyType', 'Subject', 'XMLSignatureEngine', 'XMLSignatureError', 'load_certificate', 'load_private_key', 'load_public_key', 'save_certificate', 'save_private_key', 'save_public_key', 'self_signed_certificate'
