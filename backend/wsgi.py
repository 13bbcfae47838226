# backend/wsgi.py
from jaguar import create_app

app = create_app()
