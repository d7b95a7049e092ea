"""
Engine settings, read from the ``EXPRESSIONS`` Django setting.

    EXPRESSIONS = {
        "MISSING_VALUE_FALLTHROUGH": True,
        "LOG_PARSE_WARNINGS": True,
        "DEFAULT_MISSING_VALUE_STRATEGY": "NEVER_SKIP",
    }
"""
from django.conf import settings

DEFAULTS = {
    "MISSING_VALUE_FALLTHROUGH": True,
    "LOG_PARSE_WARNINGS": True,
    "DEFAULT_MISSING_VALUE_STRATEGY": "NEVER_SKIP",
}


def get_setting(name: str):
    if name not in DEFAULTS:
        raise KeyError(f"Unknown expression setting '{name}'")
    user_settings = getattr(settings, "EXPRESSIONS", None) or {}
    return user_settings.get(name, DEFAULTS[name])
