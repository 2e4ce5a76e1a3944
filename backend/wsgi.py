# backend/wsgi.py
from pizzapos import create_app

app = create_app()
