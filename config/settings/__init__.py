# config/settings/__init__.py
"""
Settings package.
Pick a module explicitly with DJANGO_SETTINGS_MODULE; manage.py derives it from
DJANGO_ENV (development, production or test).
"""
