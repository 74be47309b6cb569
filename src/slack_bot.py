# remindbot - Slack Reminder Bot
# Copyright (c) 2025-2026 Slash Daemon slashdaemon@protonmail.com
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, version 3 of the License.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program. If not, see <https://www.gnu.org/licenses/>.
#
# Commercial licensing: [slashdaemon@protonmail.com]

"""
remindbot Slack App

FastAPI application receiving Slack event webhooks and slash commands.
Wires the reminder store, scheduler, and command handlers together and runs
the due-reminder sweep for the lifetime of the server.

Routes:
- GET  /health, GET /events - liveness text
- POST /events   - Slack Events API (url_verification, event_callback)
- POST /commands - `/reminder set|list|delete` slash command
"""

import json
import logging
import os
import urllib.parse
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from dotenv import load_dotenv
from fastapi import BackgroundTasks, FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

import analytics
from commands.mention_commands import MentionCommands
from commands.reminder_commands import ReminderCommands
from reminders import MessageDispatcher, ReminderConfig, ReminderScheduler, ReminderStore
from slack_client import SlackDispatcher

load_dotenv()

# Configure logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("remindbot")

# Let uvicorn's loggers flow through the root handler
for _name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
    logging.getLogger(_name).handlers.clear()
    logging.getLogger(_name).propagate = True

HEALTH_TEXT = "Bot running."
MENTION_EVENT_TYPES = ("app_mention", "mention")


async def _read_payload(request: Request) -> dict:
    """Decode a JSON or form-encoded request body into a flat dict."""
    body = await request.body()
    if not body:
        return {}

    content_type = request.headers.get("content-type", "")
    if "application/x-www-form-urlencoded" in content_type:
        data = urllib.parse.parse_qs(body.decode(), keep_blank_values=True)
        return {key: values[0] for key, values in data.items()}

    try:
        payload = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.warning(f"Ignoring undecodable request body: {e}")
        return {}
    return payload if isinstance(payload, dict) else {}


def create_app(
    config: Optional[ReminderConfig] = None,
    dispatcher: Optional[MessageDispatcher] = None,
    store: Optional[ReminderStore] = None,
) -> FastAPI:
    """
    Build the FastAPI app and its reminder components.

    Args:
        config: Bot configuration (from environment if omitted)
        dispatcher: Outbound messaging client (Slack if omitted)
        store: Reminder store (a fresh one if omitted)
    """
    config = config or ReminderConfig.from_env()
    dispatcher = dispatcher or SlackDispatcher(token=config.slack_bot_token)
    store = store or ReminderStore()

    scheduler = ReminderScheduler(store, dispatcher, config)
    mentions = MentionCommands(scheduler, dispatcher, config)
    slash_commands = ReminderCommands(scheduler)

    logger.info(f"Setup: SLACK_BOT_TOKEN={'set' if config.slack_bot_token else 'missing'}")
    logger.info(f"Setup: REMINDER_TIMEZONE={config.timezone}")
    logger.info(f"Setup: REMINDER_DELIVERY_MODE={config.delivery_mode}")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        scheduler.start()
        try:
            yield
        finally:
            scheduler.stop()
            await analytics.shutdown()

    app = FastAPI(title="remindbot", lifespan=lifespan)
    app.state.config = config
    app.state.store = store
    app.state.scheduler = scheduler
    app.state.mentions = mentions
    app.state.slash_commands = slash_commands

    # === Exception Handlers ===
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
        return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})

    # === Routes ===
    @app.get("/health", response_class=PlainTextResponse)
    @app.get("/events", response_class=PlainTextResponse)
    async def health():
        return HEALTH_TEXT

    @app.post("/events")
    async def slack_events(request: Request, background_tasks: BackgroundTasks):
        payload = await _read_payload(request)
        payload_type = payload.get("type")

        if payload_type == "url_verification":
            return JSONResponse({"challenge": payload.get("challenge")})

        if payload_type == "event_callback":
            event = payload.get("event")
            if not isinstance(event, dict):
                logger.warning(f"Ignoring event_callback without an event object ({type(event).__name__})")
                return Response(status_code=200)
            event_type = event.get("type")

            if event_type in MENTION_EVENT_TYPES:
                background_tasks.add_task(mentions.handle_mention, event)
            elif event_type == "message" and not event.get("bot_id"):
                background_tasks.add_task(mentions.handle_message, event)
            else:
                logger.debug(f"Ignoring event type {event_type}")

        # Slack retries anything that isn't a prompt 2xx
        return Response(status_code=200)

    @app.post("/commands", response_class=PlainTextResponse)
    async def slack_commands(request: Request):
        payload = await _read_payload(request)
        return await slash_commands.handle(
            payload.get("text", ""),
            payload.get("user_id", ""),
            payload.get("channel_id", ""),
        )

    return app


def main():
    config = ReminderConfig.from_env()
    uvicorn.run(create_app(config), host="0.0.0.0", port=config.port, log_config=None)


if __name__ == "__main__":
    main()
