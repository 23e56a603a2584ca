"""Browser-based web UI for py-jobctl.

This package provides a Flask application that exposes the job shell
through a web browser.  It is an **optional** extra — install with::

    pip install py-jobctl[web]

The ``create_app`` factory in ``app.py`` creates a shell and serves
three endpoints:

- ``GET /`` — HTML terminal page.
- ``POST /api/execute`` — execute a shell command and return JSON.
- ``GET /api/status`` — job table snapshot for live polling.
"""
