"""Run the Stillsite API server with Waitress."""

import os

# Ensure we're in the right directory
os.chdir(os.path.dirname(os.path.abspath(__file__)))

from waitress import serve

from api import create_app
from database.connection import init_db
import config

if __name__ == "__main__":
    print("=" * 50)
    print("  STILLSITE SERVER")
    print("=" * 50)

    print("\n[*] Initializing database...")
    init_db()

    app = create_app()

    print(f"[*] Origin site: {config.ORIGIN_URL}")
    print(f"\n[*] Server starting on http://{config.FLASK_HOST}:{config.FLASK_PORT}")
    print("\n" + "=" * 50)

    serve(app, host=config.FLASK_HOST, port=config.FLASK_PORT, threads=4)
