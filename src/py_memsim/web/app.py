"""Flask application factory for the simulator web UI.

The ``create_app`` function boots a simulator, creates a shell, and
returns a Flask app with three endpoints:

- ``GET /`` — render the terminal HTML page with the boot log.
- ``POST /api/execute`` — execute a command and return JSON.
- ``GET /api/status`` — return running state and the ``stats`` summary.

Each app owns exactly one simulator session; requests run one at a
time against it, as in the terminal REPL.
"""

from __future__ import annotations

from flask import Flask, Response, jsonify, render_template, request

from py_memsim.memory.allocator import DEFAULT_MEMORY_SIZE
from py_memsim.shell import Shell
from py_memsim.simulator import Simulator, SimulatorState

_HTTP_BAD_REQUEST = 400


def create_app(*, memory_size: int = DEFAULT_MEMORY_SIZE) -> Flask:
    """Create and configure the Flask application.

    Boot a simulator, create a shell, and wire up routes.

    Args:
        memory_size: Address-space size for the session.

    Returns:
        A configured Flask application ready to serve.

    """
    simulator = Simulator(memory_size=memory_size)
    simulator.boot()
    shell = Shell(simulator=simulator)

    boot_log = "\n".join(simulator.dmesg())

    app = Flask(__name__)

    @app.route("/")
    def index() -> str:  # pyright: ignore[reportUnusedFunction]
        """Render the terminal HTML page."""
        return render_template("index.html", boot_log=boot_log)

    @app.route("/api/execute", methods=["POST"])
    def execute() -> tuple[Response, int] | Response:  # pyright: ignore[reportUnusedFunction]
        """Execute a shell command and return JSON output.

        Expects JSON body: ``{"command": "..."}``

        Returns:
            JSON with ``output`` and ``halted`` fields.

        """
        data = request.get_json(silent=True)
        if data is None or "command" not in data:
            return jsonify({"error": "Missing 'command' field"}), _HTTP_BAD_REQUEST

        if simulator.state is not SimulatorState.RUNNING:
            return jsonify({"output": "Simulator stopped.", "halted": True})

        command: str = data["command"]
        result = shell.execute(command)

        if result == Shell.EXIT_SENTINEL:
            return jsonify({"output": "Simulator stopped.", "halted": True})

        return jsonify({"output": result, "halted": False})

    @app.route("/api/status")
    def status() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Return simulator status for polling.

        Returns:
            JSON with ``running`` and ``status`` fields.

        """
        running = simulator.state is SimulatorState.RUNNING
        status_text = shell.execute("stats") if running else "Simulator stopped."
        return jsonify({"running": running, "status": status_text})

    return app


def main() -> None:
    """Run the web UI development server.

    This is the ``py-memsim-web`` console entry point.
    """
    app = create_app()
    app.run(debug=True, port=8080)
