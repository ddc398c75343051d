"""HTTP route modules.

The composed router lives in `api_router`; it is re-exported here so
the application can do `from .routes import router`.
"""

from .api_router import router
