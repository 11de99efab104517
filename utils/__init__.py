# Utility modules
from .config import (
    Settings,
    load_settings,
    reload_settings,
)
from .validation import (
    normalize_gender,
    parse_decimal_cell,
    coerce_raw_value,
    station_key_for_name,
    resolve_metric_key,
)
from .logging_config import (
    setup_logging,
    log_execution_time,
    LogContext,
)
