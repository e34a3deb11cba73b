from aiohttp import web

from social.graze.webfinger.app.config import (
    ConfigStoreAppKey,
    HealthGaugeAppKey,
)


async def handle_internal_ready(request: web.Request):
    health_gauge = request.app[HealthGaugeAppKey]
    if await health_gauge.is_healthy():
        return web.Response(status=200)
    return web.Response(status=503)


async def handle_internal_alive(request: web.Request):
    return web.Response(status=200)


async def handle_internal_config(request: web.Request):
    store = request.app[ConfigStoreAppKey]
    snapshot = store.current()
    return web.json_response(
        {
            "path": str(store.path),
            "resources": len(snapshot),
            "default_subject": snapshot.default_subject,
            "loaded_at": snapshot.loaded_at,
            "reload_count": store.reload_count,
            "failure_count": store.failure_count,
            "last_error": str(store.last_error) if store.last_error else None,
        }
    )
