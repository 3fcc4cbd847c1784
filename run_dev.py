"""Run the Stillsite API in development mode (Flask dev server, auto reload)."""

from api import create_app
from database.connection import init_db
import config

if __name__ == "__main__":
    print("Initializing Stillsite (dev mode)...")
    init_db()
    print("Database initialized")

    app = create_app()
    print("Flask app created")

    print(f"\n{'='*50}")
    print(f"  Stillsite API running at: http://{config.FLASK_HOST}:{config.FLASK_PORT}/api")
    print(f"{'='*50}\n")

    app.run(
        host=config.FLASK_HOST,
        port=config.FLASK_PORT,
        debug=True,
        use_reloader=True,
        threaded=True
    )
