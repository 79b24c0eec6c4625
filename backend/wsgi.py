# backend/wsgi.py
from stockmate import create_app

app = create_app()
