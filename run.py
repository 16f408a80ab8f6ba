# Eventlet monkey patching MUST be first before any other imports
import eventlet
eventlet.monkey_patch()

from clipboard import create_app, socketio  # noqa: E402
from clipboard.services import get_document_store, get_espn_client  # noqa: E402

app = create_app()


@app.shell_context_processor
def make_shell_context():
    return {
        "store": get_document_store(),
        "espn": get_espn_client(),
    }


if __name__ == "__main__":
    socketio.run(app, host="0.0.0.0", port=5000, debug=app.config.get("DEBUG", False))
