from typing import Optional
from urllib.parse import urlparse
from ytrelay.config.settings import config

def get_locale(accept_language: Optional[str] = None) -> str:
    """Extract locale from Accept-Language header"""
    if not accept_language:
        return config.i18n.default_locale

    for lang in accept_language.split(","):
        locale = lang.strip().split(";")[0].split("-")[0].lower()
        if locale in config.i18n.supported_locales:
            return locale

    return config.i18n.default_locale

def safe_url_for_log(url: str) -> str:
    """Drop query and credentials so tokens in media URLs stay out of the logs"""
    try:
        parsed = urlparse(url)
    except ValueError:
        return "invalid_url"
    base_url = f"{parsed.scheme}://{parsed.hostname or ''}{parsed.path}"
    if parsed.query:
        return f"{base_url}?..."
    return base_url
