"""Application keys for type-safe app configuration access."""

from aiohttp import web

from sitestage.context import SiteContext

context_key = web.AppKey("context", SiteContext)
