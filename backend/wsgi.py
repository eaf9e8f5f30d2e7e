# backend/wsgi.py
from tradelink import create_app

app = create_app()
