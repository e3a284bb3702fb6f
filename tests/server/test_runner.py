"""
Server startup: config precedence and the HTTP/HTTPS choice.
"""
import ssl
from unittest.mock import MagicMock, patch

import psycopg
import pytest

from fogcontroller.server import runner
from fogcontroller.server.runner import (
    SSL_ERROR_MESSAGE,
    ServerConfig,
    build_server_config,
    load_server_config,
    start_server,
    validate_ssl_material,
)


class TestBuildServerConfig:

    def test_environment_defaults(self, settings):
        config = build_server_config(settings)
        assert config.port == settings.port
        assert config.ssl_enabled is False

    def test_store_over_file_over_environment(self, settings):
        settings = settings.model_copy(update={"ssl_cert": "/env/cert.pem", "intermediate_cert": "/env/ca.pem"})
        config = build_server_config(
            settings,
            store_values={"port": "8443", "ssl_key": "/store/key.pem"},
            file_values={"port": 9000, "ssl_key": "/file/key.pem", "ssl_cert": "/file/cert.pem"},
        )
        assert config.port == 8443
        assert config.ssl_key == "/store/key.pem"
        assert config.ssl_cert == "/file/cert.pem"
        assert config.intermediate_cert == "/env/ca.pem"
        assert config.ssl_enabled is True

    def test_empty_store_value_falls_through(self, settings):
        config = build_server_config(settings, store_values={"ssl_key": ""}, file_values={"ssl_key": "/file/key.pem"})
        assert config.ssl_key == "/file/key.pem"


def test_load_server_config_without_database(settings, tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("port: 9100\n")
    settings = settings.model_copy(update={"config_file": str(path)})
    with patch.object(runner.ConfigService, "load_values_sync", side_effect=psycopg.OperationalError("refused")), \
            patch.object(runner, "logger") as logger:
        config = load_server_config(settings)

    assert config.port == 9100
    logger.warning.assert_called_once()


class TestStartServer:

    def test_plain_http(self):
        app = object()
        with patch.object(runner.uvicorn, "run") as run, patch.object(runner, "logger") as logger:
            assert start_server(app, ServerConfig(host="0.0.0.0", port=8080)) is True

        run.assert_called_once_with(app, host="0.0.0.0", port=8080, log_level="info")
        logger.warning.assert_called_once_with("| SSL not configured, starting HTTP server.|")

    def test_unreadable_tls_files_do_not_start(self, tmp_path):
        config = ServerConfig(
            host="0.0.0.0",
            port=8443,
            ssl_key=str(tmp_path / "missing-key.pem"),
            ssl_cert=str(tmp_path / "missing-cert.pem"),
            intermediate_cert=str(tmp_path / "missing-ca.pem"),
        )
        with patch.object(runner.uvicorn, "run") as run, patch.object(runner, "logger") as logger:
            assert start_server(object(), config) is False

        run.assert_not_called()
        logger.error.assert_called_once_with(SSL_ERROR_MESSAGE)

    def test_invalid_pem_does_not_start(self, tmp_path):
        garbage = tmp_path / "garbage.pem"
        garbage.write_text("not a certificate")
        config = ServerConfig(
            host="0.0.0.0", port=8443, ssl_key=str(garbage), ssl_cert=str(garbage), intermediate_cert=str(garbage)
        )
        with patch.object(runner.uvicorn, "run") as run, patch.object(runner, "logger"):
            assert start_server(object(), config) is False
        run.assert_not_called()

    def test_missing_intermediate_cert_does_not_start(self):
        config = ServerConfig(host="0.0.0.0", port=8443, ssl_key="/k.pem", ssl_cert="/c.pem")
        context = MagicMock()
        with patch.object(runner.ssl, "create_default_context", return_value=context), \
                patch.object(runner.uvicorn, "run") as run, \
                patch.object(runner, "logger"):
            context.load_verify_locations.side_effect = TypeError("cafile, capath and cadata cannot be all omitted")
            assert start_server(object(), config) is False
        run.assert_not_called()

    def test_https_requests_optional_client_cert(self):
        config = ServerConfig(
            host="0.0.0.0", port=8443, ssl_key="/k.pem", ssl_cert="/c.pem", intermediate_cert="/ca.pem", debug=True
        )
        context = MagicMock()
        with patch.object(runner.ssl, "create_default_context", return_value=context) as create_context, \
                patch.object(runner.uvicorn, "run") as run, \
                patch.object(runner, "logger"):
            assert start_server(object(), config) is True

        create_context.assert_called_once_with(ssl.Purpose.CLIENT_AUTH)
        context.load_cert_chain.assert_called_once_with(certfile="/c.pem", keyfile="/k.pem")
        context.load_verify_locations.assert_called_once_with(cafile="/ca.pem")
        assert context.verify_mode == ssl.CERT_OPTIONAL
        kwargs = run.call_args.kwargs
        assert kwargs["ssl_keyfile"] == "/k.pem"
        assert kwargs["ssl_certfile"] == "/c.pem"
        assert kwargs["ssl_ca_certs"] == "/ca.pem"
        assert kwargs["ssl_cert_reqs"] == ssl.CERT_OPTIONAL
        assert kwargs["log_level"] == "debug"


@pytest.mark.parametrize("value", [None, ""])
def test_ssl_disabled_without_key(value):
    assert ServerConfig(host="h", port=1, ssl_key=value).ssl_enabled is False


def test_validate_ssl_material_raises_on_missing_files(tmp_path):
    config = ServerConfig(
        host="0.0.0.0",
        port=8443,
        ssl_key=str(tmp_path / "key.pem"),
        ssl_cert=str(tmp_path / "cert.pem"),
        intermediate_cert=str(tmp_path / "ca.pem"),
    )
    with pytest.raises(OSError):
        validate_ssl_material(config)
