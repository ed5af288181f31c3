"""Query-driven data endpoints.

These answer requests for an existing page that carry a query string the
page itself does not use: database lookups returned as JSON or text, and
the contact form submission. They bypass file delivery and build their own
response.
"""

import json
from collections.abc import Awaitable, Callable

from aiohttp import web

from sitestage.context import SiteContext
from sitestage.core.delivery import respond_success
from sitestage.core.resolver import Deliverable
from sitestage.errors import MalformedRequest
from sitestage.forms import validate_contact_form
from sitestage.store import SiteStore

QueryHandler = Callable[[SiteContext], Awaitable[web.Response]]

CONTACT_ROUTE = "/contact/index.html?submit"


def route_key(outcome: Deliverable) -> str:
    return f"{outcome.site_path}?{outcome.query}"


def _require_store(context: SiteContext) -> SiteStore:
    if context.store is None:
        raise MalformedRequest()
    return context.store


async def get_stories(context: SiteContext) -> web.Response:
    body = ",".join(context.stories.names).encode("utf-8")
    return respond_success("text/plain", body)


async def get_categories(context: SiteContext) -> web.Response:
    categories = await _require_store(context).categories()
    return _json_response(categories)


async def get_categories_with_sources(context: SiteContext) -> web.Response:
    categories = await _require_store(context).categories_with_sources()
    return _json_response(categories)


def create_query_routes() -> dict[str, QueryHandler]:
    return {
        "/index.html?stories": get_stories,
        "/about/index.html?categories": get_categories,
        "/data/index.html?categories": get_categories_with_sources,
    }


QUERY_ROUTES = create_query_routes()


async def handle_get(context: SiteContext, outcome: Deliverable) -> web.Response:
    """Answer a GET request routed by page and query.

    Raises:
        MalformedRequest: If no endpoint matches the page and query
    """
    handler = QUERY_ROUTES.get(route_key(outcome))
    if handler is None:
        raise MalformedRequest()
    return await handler(context)


async def handle_post(
    request: web.Request,
    context: SiteContext,
    outcome: Deliverable,
) -> web.Response:
    """Accept a contact form submission.

    Raises:
        MalformedRequest: If the route is not the contact form or the form
            input is invalid
        BackingStoreFailure: If the message cannot be stored
    """
    if route_key(outcome) != CONTACT_ROUTE:
        raise MalformedRequest()

    store = _require_store(context)
    form = await request.post()
    fields = {key: value for key, value in form.items() if isinstance(value, str)}
    message = validate_contact_form(fields)
    await store.insert_message(message)
    return respond_success("text/plain", b"")


def _json_response(data: object) -> web.Response:
    return respond_success("application/json", json.dumps(data).encode("utf-8"))
