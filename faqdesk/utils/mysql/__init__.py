from .config import MYSQL_CONFIG
from .connection import (
    close_pool,
    execute_query,
    get_pool,
    init_pool,
    initialise_and_get_pool,
    run_in_transaction,
)

__all__ = [
    "MYSQL_CONFIG",
    "init_pool",
    "close_pool",
    "get_pool",
    "execute_query",
    "run_in_transaction",
    "initialise_and_get_pool",
]
