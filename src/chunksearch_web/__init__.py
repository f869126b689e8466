"""Flask front end for the chunk search Engine."""
from .web import app, attach, main

__all__ = ["app", "attach", "main"]
