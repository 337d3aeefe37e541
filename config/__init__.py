import os

_ALIASES = {
    "prod": "config.production",
    "production": "config.production",
    "test": "config.testing",
    "testing": "config.testing",
}


def get_settings_module() -> str:
    """Resolve APP_ENV to a settings module; anything unknown means development."""
    env = os.getenv("APP_ENV", "development").lower()
    return _ALIASES.get(env, "config.development")
