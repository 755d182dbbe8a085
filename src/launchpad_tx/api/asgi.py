"""ASGI entrypoint for the signing session API."""

from launchpad_tx.api.app import create_app
from launchpad_tx.containers import build_container

app = create_app(build_container())
