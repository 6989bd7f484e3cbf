import os
from functools import lru_cache
from typing import Optional

from order_service.config.settings import Settings
from order_service.shared.logger import JohnWickLogger


@lru_cache
def _app_settings():
    return Settings().app


def get_logger(name: Optional[str] = None) -> JohnWickLogger:
    """
    Return a JohnWickLogger configured from AppSettings (log file and level).
    Loggers are cached per name by JohnWickLogger itself.
    """
    app_settings = _app_settings()
    log_file = app_settings.log_file
    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
    return JohnWickLogger(
        name=name or app_settings.app_name,
        log_file=log_file,
        level=app_settings.log_level,
    )


logger: JohnWickLogger = get_logger()
