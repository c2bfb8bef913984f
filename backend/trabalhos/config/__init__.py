from .config import Config
from .logging_config import (
    api_logger,
    app_logger,
    avaliacao_logger,
    chamadas_logger,
    db_logger,
    get_logger,
    security_logger,
    setup_logging,
    submissoes_logger,
)
from .sentry_config import capture_exception, init_sentry
