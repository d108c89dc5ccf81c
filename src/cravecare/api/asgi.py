"""ASGI entrypoint for the CraveCare API."""

from cravecare.api.app import create_app
from cravecare.containers import build_container

app = create_app(build_container())
