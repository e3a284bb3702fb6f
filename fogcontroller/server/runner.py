"""
Server startup.

The listening port and TLS material come from the config store, then the
config file, then the environment. With an SSL key configured the server
runs HTTPS and asks clients for a certificate without requiring one;
otherwise it runs plain HTTP.
"""
import ssl
from dataclasses import dataclass
from typing import Any, Mapping, Optional

import psycopg
import uvicorn

from fogcontroller.core.config import Settings, load_config_file
from fogcontroller.core.logger import setup_logger
from fogcontroller.server.api.config_store.service import ConfigService

logger = setup_logger(__name__, include_location=True)

SSL_ERROR_MESSAGE = (
    "Error: SSL-Key or SSL_CERT or INTERMEDIATE_CERT is either missing or invalid. "
    "Provide valid SSL configurations."
)


@dataclass(frozen=True)
class ServerConfig:
    host: str
    port: int
    ssl_key: Optional[str] = None
    ssl_cert: Optional[str] = None
    intermediate_cert: Optional[str] = None
    debug: bool = False

    @property
    def ssl_enabled(self) -> bool:
        return bool(self.ssl_key)


def _pick(key: str, *sources: Mapping[str, Any]) -> Any:
    for source in sources:
        value = source.get(key)
        if value not in (None, ""):
            return value
    return None


def build_server_config(
    settings: Settings,
    store_values: Optional[Mapping[str, Any]] = None,
    file_values: Optional[Mapping[str, Any]] = None,
) -> ServerConfig:
    """Merge config store values over config file values over settings."""
    store_values = store_values or {}
    file_values = file_values or {}
    env_values = {
        "port": settings.port,
        "ssl_key": settings.ssl_key,
        "ssl_cert": settings.ssl_cert,
        "intermediate_cert": settings.intermediate_cert,
    }
    sources = (store_values, file_values, env_values)
    return ServerConfig(
        host=settings.host,
        port=int(_pick("port", *sources)),
        ssl_key=_pick("ssl_key", *sources),
        ssl_cert=_pick("ssl_cert", *sources),
        intermediate_cert=_pick("intermediate_cert", *sources),
        debug=settings.debug,
    )


def load_server_config(settings: Settings) -> ServerConfig:
    """Read the config store and config file, then merge them over `settings`."""
    try:
        store_values = ConfigService.load_values_sync(settings.conn_string)
    except psycopg.Error as e:
        logger.warning(f"Config store unavailable, using config file and environment: {e}")
        store_values = {}
    file_values = load_config_file(settings.config_file)
    return build_server_config(settings, store_values, file_values)


def validate_ssl_material(config: ServerConfig) -> None:
    """
    Load the key, certificate and intermediate certificate into a context
    shaped like the one uvicorn builds from the same files (client
    certificate requested, `CERT_OPTIONAL`). The context is discarded: this
    only checks the material before a listener is bound. Raises if any of the
    files is missing or unreadable.
    """
    context = ssl.create_default_context(ssl.Purpose.CLIENT_AUTH)
    context.load_cert_chain(certfile=config.ssl_cert, keyfile=config.ssl_key)
    context.load_verify_locations(cafile=config.intermediate_cert)
    context.verify_mode = ssl.CERT_OPTIONAL


def start_server(app: Any, config: ServerConfig) -> bool:
    """
    Serve `app` until shutdown. Returns False without binding a listener when
    the TLS material is invalid.
    """
    log_level = "debug" if config.debug else "info"
    if not config.ssl_enabled:
        logger.warning("| SSL not configured, starting HTTP server.|")
        logger.info(f"==> Listening on port {config.port}. Open up http://localhost:{config.port}/ in your browser.")
        uvicorn.run(app, host=config.host, port=config.port, log_level=log_level)
        return True

    try:
        validate_ssl_material(config)
    except (OSError, ssl.SSLError, TypeError, ValueError) as e:
        logger.error(SSL_ERROR_MESSAGE)
        logger.debug(f"TLS setup failed: {e!r}")
        return False

    logger.info(f"==> HTTPS server listening on port {config.port}. Open up https://localhost:{config.port}/ in your browser.")
    uvicorn.run(
        app,
        host=config.host,
        port=config.port,
        log_level=log_level,
        ssl_keyfile=config.ssl_key,
        ssl_certfile=config.ssl_cert,
        ssl_ca_certs=config.intermediate_cert,
        ssl_cert_reqs=ssl.CERT_OPTIONAL,
    )
    return True
