from dataclasses import asdict
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from pixel_tracker.models.event import TrackingEvent


class UserAgentRecord(BaseModel):
    browser: str
    version: str


class GeoRecord(BaseModel):
    ip: str


class EventRecord(BaseModel):
    cookies: Dict[str, str]
    host: str
    path: str
    referer: str
    params: Dict[str, str]
    query: Dict[str, str]
    ip: Optional[str] = None
    decay: int
    useragent: UserAgentRecord
    language: List[str]
    geo: GeoRecord
    domain: str
    timestamp: datetime

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "cookies": {"_tracker": "5d41402abc4b2a76b9719d911017c592"},
                "host": "localhost:8080",
                "path": "/pixel.gif",
                "referer": "direct",
                "params": {},
                "query": {"campaign": "spring"},
                "ip": "127.0.0.1",
                "decay": 1700000300000,
                "useragent": {"browser": "Firefox", "version": "118.0"},
                "language": ["en-US", "en"],
                "geo": {"ip": "127.0.0.1"},
                "domain": "localhost",
                "timestamp": "2024-01-01T00:00:00+00:00",
            }
        }
    )

    @classmethod
    def from_event(cls, event: TrackingEvent) -> "EventRecord":
        return cls(**asdict(event))

    def to_json(self) -> Dict[str, object]:
        # "ip" is left out entirely when IP tracking is off.
        return self.model_dump(mode="json", exclude_none=True)
