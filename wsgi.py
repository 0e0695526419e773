"""
WSGI entry point for gunicorn / flask CLI.

    flask --app wsgi seed-demo
    gunicorn wsgi:app
"""

from pcs import create_app

app = create_app()
