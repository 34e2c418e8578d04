"""ASGI entrypoint for the nutrition accuracy API."""

from nutrition_accuracy.api.app import create_app
from nutrition_accuracy.containers import build_container

app = create_app(build_container())
