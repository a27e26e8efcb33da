# backend/wsgi.py
# FLASK_APP entry point: `flask --app wsgi run` / `flask --app wsgi system init`
from pos_system import create_app

app = create_app()

if __name__ == "__main__":
    app.run()
