from .base import *

DEBUG = False

# À configurer explicitement en prod
ALLOWED_HOSTS = [h for h in ALLOWED_HOSTS if h]

# Cookies sécurisés
SESSION_COOKIE_SECURE = True
CSRF_COOKIE_SECURE = True
SECURE_SSL_REDIRECT = True

# HSTS (ajuster selon politique)
SECURE_HSTS_SECONDS = 31536000
SECURE_HSTS_INCLUDE_SUBDOMAINS = True
SECURE_HSTS_PRELOAD = True

SECURE_REFERRER_POLICY = "same-origin"

# Logging JSON forcé
LOGGING["handlers"]["console"]["formatter"] = "json"

# Pas de mode non sécurisé en prod: le secret webhook est obligatoire
if not PROVIDER_WEBHOOK_SECRET:
    from django.core.exceptions import ImproperlyConfigured
    raise ImproperlyConfigured("PROVIDER_WEBHOOK_SECRET must be set in production")
