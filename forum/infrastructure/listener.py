"""TLS/Listener Configurator — plaintext or hardened-TLS uvicorn listener.

Invariants:
    - TLS only when both https.certificate and https.key are configured
    - Minimum protocol TLS 1.2; TLS 1.2 suites limited to ECDHE + AEAD
      (ChaCha20-Poly1305, AES-256-GCM, AES-128-GCM) for ECDSA and RSA certificates
    - Curve preference X25519, P-256, P-384, P-521
    - serve() blocks until the server stops; a listener that never started raises

Design Decisions:
    - uvicorn.Config builds its own SSLContext in load(); HardenedConfig swaps
      in the context from build_tls_context() right after
    - TLS 1.3 suites are AEAD-only and not configurable through the ssl module
"""

import logging
import ssl

import uvicorn
from fastapi import FastAPI

from forum.config import Settings

logger = logging.getLogger(__name__)

MINIMUM_TLS_VERSION = ssl.TLSVersion.TLSv1_2

CIPHER_SUITES = (
    "ECDHE-ECDSA-CHACHA20-POLY1305",
    "ECDHE-RSA-CHACHA20-POLY1305",
    "ECDHE-ECDSA-AES256-GCM-SHA384",
    "ECDHE-RSA-AES256-GCM-SHA384",
    "ECDHE-ECDSA-AES128-GCM-SHA256",
    "ECDHE-RSA-AES128-GCM-SHA256",
)

CURVE_PREFERENCE = ("X25519", "P-256", "P-384", "P-521")


def create_tls_context() -> ssl.SSLContext:
    """Server context with the restrictive profile, no certificate loaded yet."""
    context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
    context.minimum_version = MINIMUM_TLS_VERSION
    context.set_ciphers(":".join(CIPHER_SUITES))
    context.options |= ssl.OP_CIPHER_SERVER_PREFERENCE | ssl.OP_NO_COMPRESSION
    apply_curve_preference(context)
    return context


def apply_curve_preference(context: ssl.SSLContext) -> bool:
    """Set key-exchange groups when the ssl module exposes group selection.

    Older interpreters only offer set_ecdh_curve(), which pins a single curve;
    there the OpenSSL default order (X25519 first) is left in place.
    """
    set_groups = getattr(context, "set_groups", None)
    if set_groups is None:
        logger.debug("ssl module has no group selection; using OpenSSL default curves")
        return False
    set_groups(":".join(CURVE_PREFERENCE))
    return True


def build_tls_context(certificate: str, key: str) -> ssl.SSLContext:
    context = create_tls_context()
    context.load_cert_chain(certfile=certificate, keyfile=key)
    return context


def split_address(address: str) -> tuple[str, int]:
    """Parse ":8080", "host:8080" or "[::1]:8080". Empty host means all interfaces."""
    host, sep, port = address.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"invalid listen address {address!r}")
    host = host.strip("[]")
    return host or "0.0.0.0", int(port)


def display_url(address: str, tls: bool) -> str:
    url = "localhost" + address if address.startswith(":") else address
    return f"{'https' if tls else 'http'}://{url}/"


class HardenedConfig(uvicorn.Config):
    """uvicorn config whose SSL context follows the restrictive profile."""

    def load(self) -> None:
        super().load()
        if self.is_ssl:
            self.ssl = build_tls_context(
                str(self.ssl_certfile), str(self.ssl_keyfile),
            )


def build_server_config(app: FastAPI, settings: Settings) -> HardenedConfig:
    https = settings.https
    host, port = split_address(https.address)
    tls = bool(https.certificate and https.key)
    return HardenedConfig(
        app,
        host=host,
        port=port,
        ssl_certfile=https.certificate if tls else None,
        ssl_keyfile=https.key if tls else None,
        log_config=None,
        server_header=False,
    )


def serve(app: FastAPI, settings: Settings) -> None:
    """Run the listener on the calling thread until it stops."""
    config = build_server_config(app, settings)
    logger.info(
        f"Webserver listening at {display_url(settings.https.address, config.is_ssl)}",
        extra={"address": settings.https.address},
    )
    server = uvicorn.Server(config)
    server.run()
    if not server.started:
        raise RuntimeError(f"listener on {settings.https.address} failed to start")
