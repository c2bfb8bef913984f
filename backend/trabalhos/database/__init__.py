from .db_pool import close_all_connections, close_db_connection, get_db_connection, init_connection_pool
from .pagination import Pagination, get_page_args

__all__ = [
    'init_connection_pool', 'get_db_connection', 'close_db_connection', 'close_all_connections',
    'Pagination', 'get_page_args',
]
