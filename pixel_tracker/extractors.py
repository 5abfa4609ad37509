"""Attribute extraction for pixel requests.

Every function here is pure over its input and never raises on malformed
input; each degrades to a documented default instead.
"""

import re
import time
from typing import Dict, List, Optional, Tuple
from urllib.parse import urlsplit

from starlette.requests import Request

from pixel_tracker.models.event import BrowserInfo


DIRECT_REFERER = "direct"
DECAY_WINDOW_SECONDS = 5 * 60

# Order matters: Edge UAs also carry "Chrome/", and Chrome UAs carry "Safari/"
# but never "Version/".
_BROWSER_SIGNATURES: Tuple[Tuple[str, "re.Pattern[str]"], ...] = (
    ("Edge", re.compile(r"Edg/(\S+)")),
    ("Firefox", re.compile(r"Firefox/(\S+)")),
    ("Safari", re.compile(r"Version/(\S+).*?Safari/")),
    ("Chrome", re.compile(r"Chrome/(\S+)")),
    ("Opera", re.compile(r"Opera/(\S+)")),
    ("MSIE", re.compile(r"MSIE (\S+);")),
)


def extract_cookies(request: Request) -> Dict[str, str]:
    return dict(request.cookies)


def extract_query(request: Request) -> Dict[str, str]:
    """Map each query key to the first value supplied for it."""

    query: Dict[str, str] = {}
    for key, value in request.query_params.multi_items():
        query.setdefault(key, value)
    return query


def get_referer(request: Request) -> str:
    referer = request.headers.get("referer") or request.headers.get("referrer")
    return referer or DIRECT_REFERER


def remote_address(request: Request) -> str:
    """Socket peer as ``host:port`` (brackets around IPv6 hosts)."""

    if request.client is None:
        return ""
    host, port = request.client.host, request.client.port
    if ":" in host:
        host = f"[{host}]"
    return f"{host}:{port}"


def split_host_port(address: str) -> Tuple[str, str]:
    """Split ``host:port``; raise ``ValueError`` when ``address`` has no port."""

    if address.startswith("["):
        end = address.find("]")
        if end < 0 or address[end + 1 : end + 2] != ":":
            raise ValueError(f"missing port in address {address!r}")
        return address[1:end], address[end + 2 :]
    host, sep, port = address.rpartition(":")
    if not sep:
        raise ValueError(f"missing port in address {address!r}")
    if ":" in host:
        raise ValueError(f"too many colons in address {address!r}")
    return host, port


def client_ip(request: Request, remote_addr: Optional[str] = None) -> str:
    """Resolve the client IP, trusting proxy headers over the socket peer."""

    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip

    if remote_addr is None:
        remote_addr = remote_address(request)
    try:
        host, _ = split_host_port(remote_addr)
    except ValueError:
        return remote_addr
    return host


def compute_decay(decay: Optional[str], now: Optional[float] = None) -> int:
    """Epoch milliseconds five minutes from ``now``, or 0 once ``decay`` is given.

    A supplied value is not parsed; any non-empty ``decay`` yields 0.
    """

    if decay:
        return 0
    if now is None:
        now = time.time()
    return int(now + DECAY_WINDOW_SECONDS) * 1000


def parse_user_agent(user_agent: str) -> BrowserInfo:
    if not user_agent:
        return BrowserInfo(browser="unknown", version="")
    for name, pattern in _BROWSER_SIGNATURES:
        match = pattern.search(user_agent)
        if match:
            return BrowserInfo(browser=name, version=match.group(1))
    return BrowserInfo(browser="other", version="")


def parse_language(accept_language: str) -> List[str]:
    languages = []
    for part in accept_language.split(","):
        lang = part.split(";", 1)[0].strip()
        if lang:
            languages.append(lang)
    return languages


def extract_domain(host: str) -> str:
    """Return ``host`` without its port, or ``host`` itself if it won't parse."""

    if not host:
        return ""
    try:
        parts = urlsplit(f"http://{host}")
        # Touching .port validates it.
        parts.port
    except ValueError:
        return host
    return parts.hostname or ""
