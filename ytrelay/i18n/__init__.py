import json
import logging
import os
from typing import Dict, Any, Optional
from ytrelay.config.settings import config

logger = logging.getLogger(__name__)

LOCALES_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "locales")

class I18n:
    """Message catalog backed by the JSON files in ytrelay/locales"""

    def __init__(self, locales_dir: str = LOCALES_DIR, default_locale: Optional[str] = None):
        self.locales: Dict[str, Dict[str, Any]] = {}
        self.default_locale = default_locale or config.i18n.default_locale
        self.load_locales(locales_dir)

    def load_locales(self, locales_dir: str):
        if not os.path.isdir(locales_dir):
            logger.warning(f"Locales directory not found at {locales_dir}")
            return

        for filename in sorted(os.listdir(locales_dir)):
            if not filename.endswith(".json"):
                continue
            locale_code = filename[:-5]
            with open(os.path.join(locales_dir, filename), "r", encoding="utf-8") as f:
                self.locales[locale_code] = json.load(f)

    def get(self, key: str, locale: Optional[str] = None, **kwargs) -> str:
        """Look up a dotted key ("error.missing_url") and interpolate kwargs"""
        if not locale or locale not in self.locales:
            locale = self.default_locale

        value: Any = self.locales.get(locale, {})
        for part in key.split("."):
            if isinstance(value, dict) and part in value:
                value = value[part]
            else:
                if locale != self.default_locale:
                    return self.get(key, self.default_locale, **kwargs)
                return key

        if isinstance(value, str):
            try:
                return value.format(**kwargs)
            except KeyError:
                return value

        return str(value)

i18n = I18n()
