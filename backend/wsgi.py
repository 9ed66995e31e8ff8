# backend/wsgi.py
from storecheer import create_app

app = create_app()
