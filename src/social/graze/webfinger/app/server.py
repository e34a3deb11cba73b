import asyncio
import contextlib
import logging
from time import time
from typing import (
    Optional,
)
from aiohttp import web
import sentry_sdk
from sentry_sdk.integrations.aiohttp import AioHttpIntegration

from social.graze.webfinger.app.config import (
    ConfigReloadTaskAppKey,
    ConfigStoreAppKey,
    HealthGaugeAppKey,
    MetricsClientAppKey,
    ResolutionEngineAppKey,
    Settings,
    SettingsAppKey,
    TickHealthTaskAppKey,
)
from social.graze.webfinger.app.cors import cors_middleware
from social.graze.webfinger.app.handlers.internal import (
    handle_internal_alive,
    handle_internal_config,
    handle_internal_ready,
)
from social.graze.webfinger.app.handlers.webfinger import handle_webfinger
from social.graze.webfinger.app.metrics import create_metrics_client
from social.graze.webfinger.app.tasks import (
    config_reload_task,
    tick_health_task,
)
from social.graze.webfinger.model.health import HealthGauge
from social.graze.webfinger.model.store import ConfigStore
from social.graze.webfinger.resolve.resource import ResolutionEngine

logger = logging.getLogger(__name__)


async def background_tasks(app):
    logger.info("Starting up")
    settings: Settings = app[SettingsAppKey]

    metrics_client = create_metrics_client(
        settings.metrics_backend,
        host=settings.statsd_host,
        port=settings.statsd_port,
        debug=settings.debug,
    )
    await metrics_client.connect()
    app[MetricsClientAppKey] = metrics_client

    logger.info("Startup complete")

    app[TickHealthTaskAppKey] = asyncio.create_task(tick_health_task(app))
    app[ConfigReloadTaskAppKey] = asyncio.create_task(config_reload_task(app))

    yield

    logger.info("Shutting down background tasks")

    app[TickHealthTaskAppKey].cancel()
    app[ConfigReloadTaskAppKey].cancel()

    with contextlib.suppress(asyncio.exceptions.CancelledError):
        await app[TickHealthTaskAppKey]

    with contextlib.suppress(asyncio.exceptions.CancelledError):
        await app[ConfigReloadTaskAppKey]

    await app[MetricsClientAppKey].close()


@web.middleware
async def sentry_middleware(request: web.Request, handler):
    try:
        response = await handler(request)
        return response
    except web.HTTPException:
        raise
    except Exception as e:
        sentry_sdk.capture_exception(e)
        raise e


@web.middleware
async def statsd_middleware(request: web.Request, handler):
    metrics_client = request.app[MetricsClientAppKey]
    prefix = request.app[SettingsAppKey].statsd_prefix
    request_method: str = request.method
    request_path = request.path

    start_time: float = time()
    response_status_code = 0

    try:
        response = await handler(request)
        response_status_code = response.status
        return response
    except web.HTTPException as e:
        response_status_code = e.status
        raise e
    except Exception as e:
        response_status_code = 500
        metrics_client.increment(
            f"{prefix}.server.request.exception",
            1,
            tag_dict={
                "exception": type(e).__name__,
                "path": request_path,
                "method": request_method,
            },
        )
        raise e
    finally:
        metrics_client.timer(
            f"{prefix}.server.request.time",
            time() - start_time,
            tag_dict={"path": request_path, "method": request_method},
        )
        metrics_client.increment(
            f"{prefix}.server.request.count",
            1,
            tag_dict={
                "path": request_path,
                "method": request_method,
                "status": response_status_code,
            },
        )


async def start_web_server(
    settings: Optional[Settings] = None, store: Optional[ConfigStore] = None
):
    """
    Build the WebFinger application.

    The account configuration is loaded before the application is returned; a
    ConfigError here is fatal because the service must not serve without configuration.
    """

    if settings is None:
        settings = Settings()  # type: ignore
    if settings.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            send_default_pii=False,
            integrations=[AioHttpIntegration()],
        )

    if store is None:
        store = await ConfigStore.open(settings.config_file)

    app = web.Application(
        middlewares=[cors_middleware, statsd_middleware, sentry_middleware]
    )

    app[SettingsAppKey] = settings
    app[HealthGaugeAppKey] = HealthGauge()
    app[ConfigStoreAppKey] = store
    app[ResolutionEngineAppKey] = ResolutionEngine(store)

    app.add_routes([web.get("/.well-known/webfinger", handle_webfinger)])

    app.add_routes(
        [
            web.get("/internal/alive", handle_internal_alive),
            web.get("/internal/ready", handle_internal_ready),
            web.get("/internal/config", handle_internal_config),
        ]
    )

    app.cleanup_ctx.append(background_tasks)

    return app
