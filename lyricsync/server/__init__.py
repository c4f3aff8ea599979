"""HTTP remote-control API for a player session.

WHY: The audio element lives in a client (browser, kiosk, phone) while
the engine runs here. The client forwards key presses and sink events
over HTTP and renders the state it gets back.

HOW: app.py defines the FastAPI routes, models.py the pydantic schemas,
session.py the lock-guarded store that owns the single controller.
"""
