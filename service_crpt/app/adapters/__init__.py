"""
Adapters package for the CRPT client.

Contains the HTTP client wrapper for the document API. The adapter
encapsulates the endpoint URL, request shape, TLS mode and the mapping of
transport and status failures onto shared errors.
"""

from .crpt_client import CrptApiClient, build_http_client
