"""
asgi.py -- Application assembly for campusnav.

This is the ONLY file that imports from both api/ and web/. It joins the REST
API and the static frontend fallback into one ASGI app without coupling them.
api/main.py knows nothing about web/; web/routes.py knows nothing about api/.

Run with:  uvicorn asgi:app --reload
           python main.py
"""

from api.main import app, settings
from web.routes import router as web_router

# Mounted last: the catch-all GET must only see paths no API route claimed.
app.include_router(web_router, prefix=settings.base_path, tags=["Web UI"])
