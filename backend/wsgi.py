# backend/wsgi.py
# FLASK_APP entrypoint: `python -m flask --app wsgi.py run` from the backend directory.
from boutique import create_app

app = create_app()
