from .filename import content_disposition, safe_filename
from .hash import cache_key

__all__ = ["cache_key", "content_disposition", "safe_filename"]
