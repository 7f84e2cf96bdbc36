"""
WSGI entry point. Production servers import `app` from here
(e.g. `gunicorn wsgi:app`); `python wsgi.py` starts the dev server
on HOST:PORT from the environment.
"""

from rxgate.config import Config
from rxgate.main import create_app

app = create_app()

if __name__ == "__main__":
    app.run(host=Config.HOST, port=Config.PORT, debug=app.config["DEBUG"])
