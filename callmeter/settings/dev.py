from .base import *

DEBUG = True

ALLOWED_HOSTS = ["127.0.0.1", "localhost"]

# Cookies non sécurisés en dev
SESSION_COOKIE_SECURE = False
CSRF_COOKIE_SECURE = False

# DRF renderers plus larges en dev (browsable API pour l'admin)
REST_FRAMEWORK["DEFAULT_RENDERER_CLASSES"] = (
    "rest_framework.renderers.JSONRenderer",
    "rest_framework.renderers.BrowsableAPIRenderer",
)

# Logs lisibles en dev
LOGGING["handlers"]["console"]["formatter"] = "simple"
LOGGING["loggers"]["callmeter"]["level"] = "DEBUG"

# Settlement exécuté dans le process web si pas de worker Celery local
CELERY_TASK_ALWAYS_EAGER = env("CELERY_EAGER", "0") == "1"
