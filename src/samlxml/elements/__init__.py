# SPDX-FileCopyrightText: 2020-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Element bindings for the SAML 2.0 metadata and assertion vocabularies"""

from . import alg, ds, md, mdui, saml

__all__ = 'alg', 'ds', 'md', 'mdui', 'saml'
