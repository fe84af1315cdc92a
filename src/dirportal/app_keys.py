"""Application keys for type-safe app configuration access."""

from aiohttp import web

from dirportal.config import Config
from dirportal.core.cache import MemoryCacheStore
from dirportal.core.docs import DocsTreeCache
from dirportal.core.search import SearchIndex
from dirportal.store.client import DirectoryStoreClient

config_key = web.AppKey("config", Config)
cache_key = web.AppKey("cache", MemoryCacheStore)
docs_key = web.AppKey("docs", DocsTreeCache)
search_key = web.AppKey("search", SearchIndex)
store_key = web.AppKey("store", DirectoryStoreClient)
