import logging
import os
from logging.handlers import RotatingFileHandler, SysLogHandler
from pathlib import Path
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.responses import HTMLResponse, PlainTextResponse

from pixel_tracker.config import load_config
from pixel_tracker.models.event import TrackingEvent
from pixel_tracker.tracker import PixelTracker

APP_NAME = "pixel-tracker"

DEMO_PAGE = Path(__file__).parent / "static" / "index.html"


logger = logging.getLogger(APP_NAME)
logger.setLevel(logging.INFO)

file_handler = RotatingFileHandler(
    os.getenv("TRACKER_LOG_FILE", "pixel-tracker.log"), maxBytes=1_000_000, backupCount=5
)
file_handler.setLevel(logging.ERROR)

try:
    from systemd.journal import JournalHandler

    journal_handler = JournalHandler(SYSLOG_IDENTIFIER=APP_NAME)
except Exception:  # pragma: no cover - fallback when systemd is unavailable
    journal_handler = SysLogHandler(address="/dev/log")
journal_handler.setLevel(logging.INFO)

formatter = logging.Formatter("%(asctime)s %(levelname)s %(message)s")
for handler in (file_handler, journal_handler):
    handler.setFormatter(formatter)
    logger.addHandler(handler)

# Library modules log under "pixel_tracker.*"; route their errors to the same sinks.
logging.getLogger("pixel_tracker").addHandler(file_handler)


def log_event(event: TrackingEvent) -> None:
    logger.info("Tracking event: %s from %s", event.path, event.ip or "")


def create_app(tracker: Optional[PixelTracker] = None) -> FastAPI:
    if tracker is None:
        tracker = PixelTracker(load_config())
        tracker.use(log_event)

    app = FastAPI(title=APP_NAME)
    app.state.tracker = tracker

    @app.get("/healthz", response_class=PlainTextResponse)
    def healthz() -> str:
        return "ok"

    @app.api_route("/pixel.gif", methods=["GET", "HEAD"])
    def pixel(request: Request) -> Response:
        return tracker.handle_pixel_request(request)

    @app.api_route("/p/{site}/pixel.gif", methods=["GET", "HEAD"])
    def site_pixel(site: str, request: Request) -> Response:
        return tracker.handle_pixel_request(request)

    @app.get("/stats")
    def stats() -> Response:
        return tracker.handle_stats_request()

    @app.get("/", response_class=HTMLResponse)
    def demo_page() -> str:
        return DEMO_PAGE.read_text(encoding="utf-8")

    return app


app = create_app()


def run() -> None:
    port = app.state.tracker.config.port
    logger.info("Starting pixel tracker server on port %s", port)
    logger.info("Test page: http://localhost:%s/", port)
    logger.info("Pixel endpoint: http://localhost:%s/pixel.gif", port)
    logger.info("Stats endpoint: http://localhost:%s/stats", port)
    uvicorn.run(app, host="0.0.0.0", port=port)


if __name__ == "__main__":
    run()
