"""SSLContext factory functions for the collector connection pool."""

import ssl
from typing import Optional


def create_client_context_unverified() -> ssl.SSLContext:
    """Create an SSL context that skips certificate verification (dev use)."""
    ctx = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
    ctx.check_hostname = False
    ctx.verify_mode = ssl.CERT_NONE
    return ctx


def create_client_context_verified(ca_file: str) -> ssl.SSLContext:
    """Create an SSL context that verifies the collector cert against a CA."""
    ctx = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
    ctx.load_verify_locations(ca_file)
    ctx.verify_mode = ssl.CERT_REQUIRED
    ctx.check_hostname = True
    return ctx


def create_client_context(verify_certs: bool, ca_file: str = "") -> Optional[ssl.SSLContext]:
    """Pick the context for a connection pool.

    Returns None when the system trust store should be used unchanged.
    """
    if not verify_certs:
        return create_client_context_unverified()
    if ca_file:
        return create_client_context_verified(ca_file)
    return None
