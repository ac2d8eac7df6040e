import random

from fastapi import Request

from flashcards.services.catalog import Catalog


def get_catalog(request: Request) -> Catalog:
    return request.app.state.catalog_cache.get()


def get_rng() -> random.Random:
    """Fresh OS-seeded generator per request; tests override with a seeded one."""
    return random.Random()
