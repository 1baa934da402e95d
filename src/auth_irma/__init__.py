"""
IRMA Authentication Bridge

Translates a request to disclose logical attributes (``email``, ``fullname``,
...) into an IRMA disclosure session and hands the verified values back to
the calling application as a signed-then-encrypted result token.

The service is stateless: what was requested and where to return travels in
URL path segments across the redirect through the IRMA disclosure UI.
"""

__version__ = "0.1.0"
