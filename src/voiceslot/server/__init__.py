"""HTTP surface of the scheduler.

Usage:
    from voiceslot.server import create_app

    app = create_app(load_config())
    # Run with uvicorn: uvicorn.run(app, host="0.0.0.0", port=4000)
"""

from voiceslot.server.app import create_app, get_scheduler

__all__ = ["create_app", "get_scheduler"]
