"""
Tests for fogcontroller.core.config: environment settings and the config file fallback.
"""

import pytest

from fogcontroller.core.config import DEFAULT_PORT, Settings, load_config_file, validate_mandatory_env_vars

ENV = {
    "POSTGRES_USER": "fog",
    "POSTGRES_PASSWORD": "secret",
    "POSTGRES_DB": "fogcontroller",
    "POSTGRES_HOST": "db",
    "POSTGRES_PORT": "5433",
}


class TestSettings:

    def test_from_env(self):
        settings = Settings.from_env({**ENV, "FOGCONTROLLER_DEBUG": "yes", "UNRELATED": "x"})
        assert settings.postgres_port == 5433
        assert settings.port == DEFAULT_PORT
        assert settings.debug is True

    def test_conn_string(self):
        settings = Settings.from_env(ENV)
        assert settings.conn_string == "dbname=fogcontroller user=fog password=secret host=db port=5433"

    def test_blank_tls_paths_are_unset(self):
        settings = Settings.from_env({**ENV, "FOGCONTROLLER_SSL_KEY": "  "})
        assert settings.ssl_key is None

    def test_rejects_invalid_port(self):
        with pytest.raises(ValueError):
            Settings.from_env({**ENV, "FOGCONTROLLER_PORT": "70000"})

    def test_rejects_empty_host(self):
        with pytest.raises(ValueError):
            Settings.from_env({**ENV, "POSTGRES_HOST": " "})


class TestMandatoryEnv:

    def test_complete_env_passes(self):
        validate_mandatory_env_vars(ENV)

    def test_missing_var_exits(self):
        env = dict(ENV)
        env.pop("POSTGRES_DB")
        with pytest.raises(SystemExit):
            validate_mandatory_env_vars(env)


class TestConfigFile:

    def test_missing_path(self, tmp_path):
        assert load_config_file(None) == {}
        assert load_config_file(str(tmp_path / "absent.yaml")) == {}

    def test_reads_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("port: 8080\nssl_key: /etc/fog/key.pem\n")
        assert load_config_file(str(path)) == {"port": 8080, "ssl_key": "/etc/fog/key.pem"}

    def test_reads_json(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text('{"port": 9000}')
        assert load_config_file(str(path)) == {"port": 9000}

    def test_rejects_non_mapping(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(ValueError):
            load_config_file(str(path))
