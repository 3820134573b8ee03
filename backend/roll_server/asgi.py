import os
import django
from channels.routing import ProtocolTypeRouter
from django.core.asgi import get_asgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "roll_server.settings")
django.setup()

# Event delivery to clients lives outside this project; only HTTP is served here.
application = ProtocolTypeRouter({
    "http": get_asgi_application(),
})
