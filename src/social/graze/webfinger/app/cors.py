from typing import Dict

from aiohttp import web

WELL_KNOWN_PREFIX = "/.well-known/"


def get_cors_headers(path: str) -> Dict[str, str]:
    """Return CORS headers for a request path.

    WebFinger resources are public, so anything under /.well-known/ may be read from any
    origin (RFC 7033 section 5). Other paths get no CORS headers.
    """
    if not path.startswith(WELL_KNOWN_PREFIX):
        return {}

    return {
        "Access-Control-Allow-Origin": "*",
        "Access-Control-Allow-Methods": "GET, OPTIONS",
        "Access-Control-Allow-Headers": "Accept, Content-Type",
    }


@web.middleware
async def cors_middleware(request: web.Request, handler):
    try:
        response = await handler(request)
    except web.HTTPException as e:
        e.headers.update(get_cors_headers(request.path))
        raise e
    response.headers.update(get_cors_headers(request.path))
    return response
