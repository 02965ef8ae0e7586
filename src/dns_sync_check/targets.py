import ipaddress
import re
from typing import Optional

from .errors import ConfigurationError

# Hostname label; a leading underscore is allowed for service labels.
_HOST_LABEL = re.compile(r"_?[a-z0-9](?:[a-z0-9-]*[a-z0-9])?")
_MAX_NAME = 253
_MAX_LABEL = 63


def normalize_target(raw: Optional[str]) -> str:
    """Lower-case name without surrounding blanks or the root dot."""
    if not raw:
        return ""
    return raw.strip().rstrip(".").lower()


def is_domain(name: str) -> bool:
    """Syntax check of an already normalized name; existence is not checked."""
    if not name or len(name) > _MAX_NAME:
        return False
    return all(
        len(label) <= _MAX_LABEL and _HOST_LABEL.fullmatch(label)
        for label in name.split(".")
    )


def is_ip(name: str) -> bool:
    try:
        ipaddress.ip_address(name)
    except ValueError:
        return False
    return True


def require_domain(raw: str) -> str:
    """Zone given with -d."""
    name = normalize_target(raw)
    if not is_domain(name):
        raise ConfigurationError(f"Invalid domain: {raw!r}")
    return name


def require_server(raw: str) -> str:
    """Master (-H) or slave (-S) entry: host name or IP literal."""
    name = normalize_target(raw)
    if is_ip(name) or is_domain(name):
        return name
    raise ConfigurationError(f"Invalid server name or address: {raw!r}")
