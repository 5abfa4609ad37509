import logging
from datetime import datetime, timezone
from typing import List, Optional

from starlette.background import BackgroundTask
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from pixel_tracker import extractors
from pixel_tracker.config import ConfigHolder, TrackerConfig
from pixel_tracker.crud.events import EventStore
from pixel_tracker.handlers import EventHandler, HandlerChain
from pixel_tracker.identity import assign_identity
from pixel_tracker.models.event import GeoInfo, TrackingEvent
from pixel_tracker.schemas.event import EventRecord


logger = logging.getLogger(__name__)

# Smallest valid transparent 1x1 GIF (43 bytes).
PIXEL_GIF = bytes.fromhex(
    "47494638396101000100800000000000"
    "00000021f90401000000002c00000000"
    "010001000002024401003b"
)

PIXEL_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


class PixelTracker:
    """Serves the pixel and records one tracking event per pixel request.

    Configuration, handlers and the event store are owned here and shared by
    all request workers. Capture runs as a background task once the pixel
    response has been sent, so a slow or failing capture never touches the
    response.
    """

    def __init__(
        self,
        config: Optional[TrackerConfig] = None,
        store: Optional[EventStore] = None,
        handlers: Optional[HandlerChain] = None,
    ) -> None:
        self._config = ConfigHolder(config or TrackerConfig())
        self.store = store if store is not None else EventStore()
        self.handlers = handlers if handlers is not None else HandlerChain()

    @property
    def config(self) -> TrackerConfig:
        return self._config.get()

    def configure(self, config: TrackerConfig) -> None:
        self._config.replace(config)

    def use(self, handler: EventHandler) -> None:
        self.handlers.register(handler)

    def tracking_data(self) -> List[TrackingEvent]:
        return self.store.snapshot()

    def handle_pixel_request(self, request: Request) -> Response:
        config = self._config.get()
        response = Response(
            content=PIXEL_GIF,
            media_type="image/gif",
            headers=PIXEL_HEADERS,
            background=BackgroundTask(self.capture, request, config),
        )
        assign_identity(request, response, config)
        return response

    def build_event(self, request: Request, config: TrackerConfig) -> TrackingEvent:
        ip = extractors.client_ip(request)
        query = extractors.extract_query(request)
        return TrackingEvent(
            cookies=extractors.extract_cookies(request),
            host=request.headers.get("host", ""),
            path=request.url.path,
            referer=extractors.get_referer(request),
            params={key: str(value) for key, value in request.path_params.items()},
            query=query,
            ip=ip if config.track_ip else None,
            decay=extractors.compute_decay(query.get("decay")),
            useragent=extractors.parse_user_agent(request.headers.get("user-agent", "")),
            language=extractors.parse_language(request.headers.get("accept-language", "")),
            geo=GeoInfo(ip=ip),
            domain=extractors.extract_domain(request.headers.get("host", "")),
            timestamp=datetime.now(timezone.utc),
        )

    def capture(self, request: Request, config: TrackerConfig) -> None:
        try:
            event = self.build_event(request, config)
            self.store.append(event)
        except Exception:
            logger.exception("error capturing tracking event for %s", request.url.path)
            return
        self.handlers.dispatch(event)

    def handle_stats_request(self) -> Response:
        try:
            payload = [EventRecord.from_event(event).to_json() for event in self.store.snapshot()]
        except Exception:
            logger.exception("error serializing tracking stats")
            return Response(status_code=500)
        return JSONResponse(payload)
