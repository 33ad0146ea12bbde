from .config import AppConfig, get_app_config  # noqa: F401
