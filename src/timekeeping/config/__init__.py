import os


def get_settings_module() -> str:
    # Chọn module cấu hình theo biến APP_ENV, mặc định là 'development'
    env = os.getenv("APP_ENV", "development").lower()

    if env in {"prod", "production"}:
        return "timekeeping.config.production"

    if env in {"test", "testing"}:
        return "timekeeping.config.testing"

    return "timekeeping.config.development"
