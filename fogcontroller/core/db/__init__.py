from .pool import init_pool, get_pool, get_pool_connection, close_pool

__all__ = ["init_pool", "get_pool", "get_pool_connection", "close_pool"]
