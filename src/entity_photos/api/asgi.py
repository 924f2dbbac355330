"""ASGI entrypoint for the entity photos API."""

from entity_photos.api.app import create_app
from entity_photos.containers import build_container

app = create_app(build_container())
