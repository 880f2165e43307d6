# SPDX-FileCopyrightText: 2020-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

__version__ = '0.1.0'

__license__ = 'AGPLv3+'
__summary__ = 'Typed object model and element bindings for the SAML 2.0 XML vocabulary'

__author__ = 'Dan Pascu'
__copyright__ = f'Copyright 2020-present {__author__}'
