"""Flask application factory for the py-jobctl web UI.

The ``create_app`` function creates a shell and returns a Flask app
with three endpoints:

- ``GET /`` — render the terminal HTML page.
- ``POST /api/execute`` — reap, execute a command, and return JSON.
- ``GET /api/status`` — return the session state and the job table.

The web UI drives the same ``Shell`` as the terminal REPL, so the
polling model is unchanged: completed jobs are noticed when the next
command arrives, not in the background.

The shell handles one command at a time.  Flask may serve requests on
several threads, so every route that touches the shell holds one
per-app lock for the whole request.
"""

from __future__ import annotations

import threading

from flask import Flask, Response, jsonify, render_template, request

from py_jobctl.config import ShellConfig
from py_jobctl.process import ProcessControl
from py_jobctl.shell import HALTED_MESSAGE, Shell

_HTTP_BAD_REQUEST = 400


def create_app(
    config: ShellConfig | None = None,
    *,
    process_control: ProcessControl | None = None,
) -> Flask:
    """Create and configure the Flask application.

    Args:
        config: Session settings for the shell behind the app.
        process_control: OS boundary override (tests pass a fake).

    Returns:
        A configured Flask application ready to serve.

    """
    shell = Shell(config=config, process_control=process_control)

    lock = threading.Lock()

    app = Flask(__name__)
    app.extensions["py_jobctl.shell"] = shell
    app.extensions["py_jobctl.lock"] = lock

    @app.route("/")
    def index() -> str:  # pyright: ignore[reportUnusedFunction]
        """Render the terminal HTML page."""
        return render_template(
            "index.html",
            max_jobs=shell.config.max_jobs,
            max_running=shell.config.max_running,
        )

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

        command: str = str(data["command"])
        with lock:
            if shell.halted:
                return jsonify({"output": HALTED_MESSAGE, "halted": True})
            completed = shell.reap()
            result = shell.execute(command)
            halted = shell.halted
        output = "\n".join(part for part in (completed, result) if part)
        return jsonify({"output": output, "halted": halted})

    @app.route("/api/status")
    def status() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Return session status and the job table.

        Returns:
            JSON with ``running``, ``running_count`` and ``jobs`` fields.

        """
        with lock:
            body = {
                "running": not shell.halted,
                "running_count": shell.scheduler.running_count,
                "max_running": shell.scheduler.max_running,
                "jobs": shell.controller.snapshot(),
            }
        return jsonify(body)

    return app


def main() -> None:
    """Run the web UI development server.

    This is the ``py-jobctl-web`` console entry point.
    """
    app = create_app()
    try:
        app.run(port=8080, use_reloader=False)
    finally:
        shell: Shell = app.extensions["py_jobctl.shell"]
        with app.extensions["py_jobctl.lock"]:
            output = shell.close()
        print(output)  # noqa: T201
