# config/settings/production.py
"""
Production-specific settings.
"""
from .base import *


# Security settings
SECURE_SSL_REDIRECT = env.bool('SECURE_SSL_REDIRECT', default=True)
SESSION_COOKIE_SECURE = True
CSRF_COOKIE_SECURE = True
SECURE_CONTENT_TYPE_NOSNIFF = True
X_FRAME_OPTIONS = 'DENY'

# HSTS settings
SECURE_HSTS_SECONDS = 31536000  # 1 year
SECURE_HSTS_INCLUDE_SUBDOMAINS = True
SECURE_HSTS_PRELOAD = True

# Database: no default, a missing DATABASE_URL stops start-up
DATABASES = {
    'default': env.db('DATABASE_URL'),
}
DATABASES['default']['CONN_MAX_AGE'] = DB_CONN_MAX_AGE
DATABASES['default']['CONN_HEALTH_CHECKS'] = True
if DATABASES['default']['ENGINE'] == 'django.db.backends.postgresql':
    DATABASES['default'].setdefault('OPTIONS', {})['connect_timeout'] = DB_CONNECT_TIMEOUT

# Only JSON renderer in production
REST_FRAMEWORK['DEFAULT_RENDERER_CLASSES'] = [
    'rest_framework.renderers.JSONRenderer',
]

LOGGING['formatters']['verbose'] = {
    'format': '{levelname} {asctime} {module} {message}',
    'style': '{',
}
LOGGING['handlers']['console']['formatter'] = 'verbose'
