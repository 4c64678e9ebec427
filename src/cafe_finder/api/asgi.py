"""ASGI entrypoint for the cafe finder API."""

from cafe_finder.api.app import create_app
from cafe_finder.containers import build_container

app = create_app(build_container())
