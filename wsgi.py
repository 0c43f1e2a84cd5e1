"""Gunicorn entry point: gunicorn wsgi:app"""
import sys
import os

sys.path.insert(0, os.path.dirname(__file__))

from salesboard import create_app

app = create_app(os.getenv('APP_CONFIG', 'config.Config'))

if __name__ == "__main__":
    app.run()
