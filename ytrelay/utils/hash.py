import hashlib

KEY_DIGEST_CHARS = 16

def cache_key(namespace: str, value: str) -> str:
    """Redis key for value under namespace, e.g. "info:3f2a..." for a media URL"""
    digest = hashlib.sha256(value.encode("utf-8")).hexdigest()[:KEY_DIGEST_CHARS]
    return f"{namespace}:{digest}"
