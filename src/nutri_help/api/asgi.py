"""ASGI entrypoint for the NutriHelp local API."""

from nutri_help.api.app import create_app
from nutri_help.containers import build_container

app = create_app(build_container())
