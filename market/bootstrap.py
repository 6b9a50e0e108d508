"""
Application bootstrap: config, logging, session db, API clients, web front.
"""

from dataclasses import dataclass
import time
from typing import Any, Dict, Optional

from loguru import logger

from market.api.client import MarketClient
from market.api.identity_api import IdentityClient
from market.config.settings import Settings, load_settings
from market.db.schema import init_schema
from market.db.sqlite import connect
from market.logging.setup import setup_logging
from market.services.session_service import SessionStore
from market.workers.cleanup_worker import CleanupWorker

from front.app import create_app
from front.server import FrontServer


@dataclass
class Runner:
    settings: Settings
    db_conn: Any
    cleanup: CleanupWorker
    front: Optional[FrontServer] = None

    def start(self) -> None:
        if self.front is not None:
            self.front.start()
        self.cleanup.start()

    def run_forever(self) -> None:
        self.start()
        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            logger.info("Shutdown requested (Ctrl+C)")
        finally:
            try:
                self.cleanup.stop()
            finally:
                if self.front is not None:
                    self.front.stop()
                self.db_conn.close()
                logger.info("Service stopped")


def build_deps(settings: Settings, db_conn: Any) -> Dict[str, Any]:
    market = MarketClient(
        base_url=settings.api_base_url,
        api_prefix=settings.api_prefix,
        timeout_seconds=int(settings.http_timeout_seconds),
    )
    identity = IdentityClient(
        base_url=settings.identity_base_url,
        api_key=settings.identity_api_key,
        timeout_seconds=int(settings.http_timeout_seconds),
    )
    return {
        "settings": settings,
        "db": db_conn,
        "market": market,
        "identity": identity,
        "sessions": SessionStore(db_conn),
    }


def build_app() -> Dict[str, Any]:
    settings = load_settings()
    setup_logging(settings.log_level, settings.app_env)

    if not settings.identity_api_key:
        logger.warning("IDENTITY_API_KEY is not set; sign-in will fail")

    db_conn = connect(settings.sqlite_path)
    init_schema(db_conn)

    deps = build_deps(settings, db_conn)
    web = create_app(deps)

    front_server: Optional[FrontServer] = None
    if settings.web_enable:
        front_server = FrontServer(web, settings.web_host, settings.web_port)

    cleanup = CleanupWorker(settings=settings, db_conn=db_conn)

    runner = Runner(
        settings=settings,
        db_conn=db_conn,
        cleanup=cleanup,
        front=front_server,
    )

    return dict(deps, web=web, front=front_server, cleanup=cleanup, runner=runner)
