from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from challenge_api.config import settings
from challenge_api.routers import challenges
from challenge_api.upstream import upstream
from servicekit import ServiceError, ValidationError, configure_logging, configure_tracing
from servicekit.middleware import SpanContextMiddleware

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    configure_logging(settings)
    configure_tracing(settings)
    await upstream.connect()
    yield
    # Shutdown
    await upstream.disconnect()

app = FastAPI(
    title="Challenge API",
    description="Example service built with servicekit",
    version="1.0.0",
    lifespan=lifespan,
)

# Middleware
app.add_middleware(SpanContextMiddleware)

# Routers
app.include_router(challenges.router)

@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    body = exc.to_dict() if isinstance(exc, ValidationError) else {"message": exc.message}
    return JSONResponse(status_code=exc.http_status, content=body)

@app.get("/health")
async def health():
    return {"status": "healthy", "version": "1.0.0"}
