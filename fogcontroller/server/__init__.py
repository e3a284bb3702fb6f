from .app import create_app
from .runner import ServerConfig, build_server_config, start_server

__all__ = ["create_app", "ServerConfig", "build_server_config", "start_server"]
