"""thing-api: a token-authenticated resource API with asynchronous creation."""

from .main import create_app
from .settings import ThingAPISettings

__all__ = ["create_app", "ThingAPISettings"]
