from .ctl import cli_app

__all__ = ["cli_app"]
