from fastapi import Request

from ecostore_admin.utils.images import PREVIEW_URL_PREFIX


def add_security_headers(app):
    @app.middleware("http")
    async def security_headers_mw(request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "no-referrer-when-downgrade"
        # previews are revocable; browsers must not keep serving a released one
        if request.url.path.startswith(PREVIEW_URL_PREFIX):
            response.headers["Cache-Control"] = "no-store"
        return response
