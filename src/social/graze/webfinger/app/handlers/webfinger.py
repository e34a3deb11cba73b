import logging
from aiohttp import web

from social.graze.webfinger.app.config import (
    ResolutionEngineAppKey,
    SettingsAppKey,
)
from social.graze.webfinger.resolve.resource import (
    IssuerAnnouncement,
    ResolutionError,
)

logger = logging.getLogger(__name__)


async def handle_webfinger(request: web.Request):
    """
    Answer a WebFinger query.

    Only the first `resource` and `rel` values are considered; an empty value is treated as
    absent. Unresolved queries answer 404 with a plain-text reason.
    """
    settings = request.app[SettingsAppKey]
    engine = request.app[ResolutionEngineAppKey]

    resource = request.query.get("resource", "")
    rel = request.query.get("rel") or None

    if not resource and settings.require_resource:
        raise web.HTTPBadRequest(text="Missing resource parameter")

    try:
        resolution = engine.resolve(resource, rel)
    except ResolutionError as e:
        logger.debug("webfinger miss resource=%r rel=%r: %s", resource, rel, e)
        raise web.HTTPNotFound(text=str(e))

    if isinstance(resolution, IssuerAnnouncement):
        return web.Response(status=204, headers={"Host": resolution.host})

    return web.json_response(resolution.to_jrd())
