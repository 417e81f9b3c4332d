"""WSGI entrypoint for serving the MicroCompta backend."""

from microcompta.backend.app import create_app

# WSGI servers look up a module-level callable named ``application``.
application = create_app()
