# backend/wsgi.py
from bakerist import create_app

app = create_app()
