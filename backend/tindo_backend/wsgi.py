"""
WSGI entry point: Django for HTTP, python-socketio for the live tracking socket.

    gunicorn --threads 8 tindo_backend.wsgi:application
"""

import os

import socketio
from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "tindo_backend.settings")

django_app = get_wsgi_application()

from logistics.runtime import get_runtime  # noqa: E402  (needs the app registry)
from tracking.socket_bridge import LocationSocketBridge  # noqa: E402

sio = socketio.Server(async_mode=os.getenv("ASYNC_MODE", "threading"), cors_allowed_origins="*")

bridge = LocationSocketBridge(sio, get_runtime().hub).register()
bridge.start()

application = socketio.WSGIApp(sio, django_app)
