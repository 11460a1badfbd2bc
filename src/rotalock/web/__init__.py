"""Web control surface"""

from rotalock.web.app import create_app
from rotalock.web.server import WebServer

__all__ = ["create_app", "WebServer"]
