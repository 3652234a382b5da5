# crudbase/core/logging/
# ├─ __init__.py            # public API: setup_logging, correlation id helpers
# ├─ builder.py             # make_dict_config(settings) + setup_logging(settings)
# ├─ formatters.py          # JsonFormatter, ColorFormatter
# ├─ filters.py             # CorrelationIdFilter, RedactFilter (+ contextvar helpers)
# ├─ handlers.py            # handler config factories (console / file / error)
# └─ utils.py               # get_project_name(), get_project_version()


from .builder import setup_logging, make_dict_config
from .filters import (
    CorrelationIdFilter,
    RedactFilter,
    correlation_scope,
    get_correlation_id,
    reset_correlation_id,
    set_correlation_id,
)

__all__ = [
    "setup_logging",
    "make_dict_config",
    "CorrelationIdFilter",
    "RedactFilter",
    "correlation_scope",
    "get_correlation_id",
    "reset_correlation_id",
    "set_correlation_id",
]
