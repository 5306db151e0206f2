"""WSGI entrypoint for Mani-Me."""

import os
from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "manime.settings")

application = get_wsgi_application()
