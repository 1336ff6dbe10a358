"""ASGI entrypoint for the nutrition analysis API."""

from nutrition_ai.api.app import create_app
from nutrition_ai.containers import build_container

app = create_app(build_container())
