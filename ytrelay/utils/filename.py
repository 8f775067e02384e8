import re
from urllib.parse import quote

UNSAFE_CHARS = re.compile(r'[^\w\s-]')
FALLBACK_NAME = "download"


def safe_filename(title: str, ext: str) -> str:
    """Strip everything but word characters, whitespace and hyphens, then add ext"""
    base = UNSAFE_CHARS.sub('', title or '').strip()
    return f"{base or FALLBACK_NAME}.{ext}"


def content_disposition(filename: str) -> str:
    # Plain filename for old clients, RFC 5987 form for non-ASCII titles
    ascii_name = filename.encode("ascii", "ignore").decode().strip()
    if not ascii_name or ascii_name.startswith("."):
        ascii_name = f"{FALLBACK_NAME}{ascii_name}"
    return f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(filename)}"
