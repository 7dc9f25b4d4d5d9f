"""ASGI entrypoint for the surplus listings API."""

from surplus_listings.api.app import create_app
from surplus_listings.containers import build_container

app = create_app(build_container())
