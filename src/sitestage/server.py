"""aiohttp server for Sitestage.

Application factory and the single request handler. Every request is
resolved against the site, then either routed to a data endpoint or
answered with the file content, and always ends in exactly one response.
"""

import asyncio
import logging

from aiohttp import web

from sitestage.api.data import handle_get, handle_post
from sitestage.app_keys import context_key
from sitestage.config import Config
from sitestage.context import SiteContext, load_site_context
from sitestage.core.delivery import respond_failure, respond_success
from sitestage.core.resolver import Deliverable, NotFound
from sitestage.errors import PathNotResolvable, SiteError, UnsupportedType
from sitestage.templating import PageKind, identify_page

logger = logging.getLogger(__name__)

INTERNAL_ERROR = "Internal error."


async def handle(request: web.Request) -> web.Response:
    """Serve a request, converting every failure into a plain-text response."""
    context = request.app[context_key]
    try:
        return await _serve(request, context)
    except SiteError as e:
        logger.info(f"{request.method} {request.raw_path} -> {e.status} {e.reason}")
        return respond_failure(e.status, e.reason)
    except Exception:
        logger.exception(f"Unhandled error serving {request.method} {request.raw_path}")
        return respond_failure(500, INTERNAL_ERROR)


async def _serve(request: web.Request, context: SiteContext) -> web.Response:
    outcome = await context.resolver.resolve(request.raw_path)
    if isinstance(outcome, NotFound):
        raise PathNotResolvable()
    if not isinstance(outcome, Deliverable):
        raise UnsupportedType()

    if request.method == "POST" and outcome.query:
        return await handle_post(request, context, outcome)
    if request.method == "GET" and outcome.query and not _consumes_query(outcome):
        return await handle_get(context, outcome)

    try:
        body = await context.filesystem.read_file(outcome.site_path)
    except OSError as e:
        # Removed or unreadable since it was discovered
        logger.warning(f"Could not read {outcome.site_path}: {e}")
        raise PathNotResolvable() from e

    content, mime_type = await context.templates.transform(
        body,
        outcome.site_path,
        outcome.mime_type,
        outcome.query,
    )
    return respond_success(mime_type, content)


def _consumes_query(outcome: Deliverable) -> bool:
    """Story pages read their own query, so it is not a data request."""
    return identify_page(outcome.site_path).kind is PageKind.STORIES


def create_app(context: SiteContext) -> web.Application:
    """Create aiohttp application.

    Args:
        context: Site state for this application

    Returns:
        Configured aiohttp application
    """
    app = web.Application()
    app[context_key] = context
    app.router.add_route("*", "/{path:.*}", handle)
    return app


def run_server(config: Config) -> None:
    """Run the server.

    Startup checks run first; a StartupError propagates to the caller
    before anything is bound.

    Args:
        config: Application configuration
    """
    context = asyncio.run(load_site_context(config))
    app = create_app(context)
    address = f"http://{config.server.host}:{config.server.port}"
    logger.info(f"Server running at {address}")
    web.run_app(
        app,
        host=config.server.host,
        port=config.server.port,
        print=None,
    )
