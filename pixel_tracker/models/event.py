from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional


@dataclass(frozen=True)
class BrowserInfo:
    browser: str
    version: str = ""


@dataclass(frozen=True)
class GeoInfo:
    # Placeholder until a geo lookup exists; carries the resolved client IP.
    ip: str = ""


@dataclass(frozen=True)
class TrackingEvent:
    """Domain model for one captured pixel request."""

    cookies: Dict[str, str]
    host: str
    path: str
    referer: str
    params: Dict[str, str]
    query: Dict[str, str]
    decay: int
    useragent: BrowserInfo
    language: List[str]
    geo: GeoInfo
    domain: str
    timestamp: datetime
    ip: Optional[str] = None
