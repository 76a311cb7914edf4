"""Browser-based web UI for the simulator.

This package provides a Flask application that exposes the simulator
shell through a web browser.  It is an **optional** extra — install
with::

    pip install py-memsim[web]

The ``create_app`` factory in ``app.py`` boots a simulator, creates a
shell, and serves three endpoints:

- ``GET /`` — HTML terminal page.
- ``POST /api/execute`` — execute a shell command and return JSON.
- ``GET /api/status`` — free-space summary for live polling.
"""
