"""
WSGI config for box_organizer.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "box_organizer.settings")

application = get_wsgi_application()
