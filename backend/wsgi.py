# backend/wsgi.py
from menutax import create_app

app = create_app()
