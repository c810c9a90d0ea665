from fastapi import FastAPI

from clinic.config import COOKIE_SECURE, SUPABASE_URL

# Checkout des passerelles (script + iframe) et carte Google Maps de la page contact
GATEWAY_SOURCES = ["https://checkout.razorpay.com", "https://api.razorpay.com", "https://js.stripe.com", "https://api.stripe.com"]
MAPS_SOURCES = ["https://maps.googleapis.com", "https://maps.gstatic.com"]
MAPS_FRAMES = ["https://www.google.com", "https://maps.google.com"]
SWAGGER_CDNS = ["https://cdn.jsdelivr.net"]

def build_csp() -> str:
    connect = ["'self'", *GATEWAY_SOURCES, *MAPS_SOURCES]
    if SUPABASE_URL:
        connect.append(SUPABASE_URL.rstrip("/"))
    return (
        "default-src 'self'; "
        "base-uri 'self'; object-src 'none'; frame-ancestors 'none'; "
        "img-src 'self' data: blob: https:; "
        f"style-src 'self' 'unsafe-inline' https://fonts.googleapis.com {' '.join(SWAGGER_CDNS)}; "
        "font-src 'self' data: https://fonts.gstatic.com; "
        f"script-src 'self' {' '.join(GATEWAY_SOURCES + MAPS_SOURCES + SWAGGER_CDNS)}; "
        f"frame-src 'self' {' '.join(MAPS_FRAMES + GATEWAY_SOURCES)}; "
        f"connect-src {' '.join(connect)}"
    )

def register_security_middleware(app: FastAPI) -> None:
    csp = build_csp()

    @app.middleware("http")
    async def security_headers(request, call_next):
        response = await call_next(request)

        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
        response.headers.setdefault("Cross-Origin-Opener-Policy", "same-origin")
        response.headers.setdefault("Permissions-Policy", "geolocation=(), microphone=(), camera=()")
        if COOKIE_SECURE:
            response.headers.setdefault("Strict-Transport-Security", "max-age=63072000; includeSubDomains; preload")
        response.headers["Content-Security-Policy"] = csp
        return response
