from polysearch.adapters.base import AdapterFactory, AdapterOptions, ProviderAdapter
from polysearch.adapters.http import HttpProviderAdapter, random_user_agent

__all__ = [
    "AdapterFactory",
    "AdapterOptions",
    "HttpProviderAdapter",
    "ProviderAdapter",
    "random_user_agent",
]
