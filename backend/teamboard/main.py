# teamboard/main.py
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

# Your configuration and DB
from teamboard.config import settings
from teamboard.core.db import init_db, close_db
from teamboard.core.bootstrap import reset_presence
from teamboard.core.presence import PresenceTracker
from teamboard.core.pubsub import RoomRouter

from teamboard.api.v1.routers import auth, users, todos, teams, projects, messages
from teamboard.api.v1.routers.ws_events import router as ws_events_router

logger = logging.getLogger("uvicorn.error")

app = FastAPI(title=settings.APP_NAME)

# Realtime state lives for the lifetime of the process
app.state.rooms = RoomRouter()
app.state.presence = PresenceTracker(app.state.rooms)

# CORS (with Cookie)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error(status_code: int, error: dict) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": error})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if isinstance(exc.detail, dict):
        error = exc.detail
    else:
        # Framework errors (unknown route, wrong method) carry a plain string
        error = {"code": "HTTP_ERROR", "message": str(exc.detail)}
    return _error(exc.status_code, error)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    messages = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err.get("loc", ())[1:])
        messages.append(f"{field}: {err.get('msg')}" if field else str(err.get("msg")))
    return _error(400, {"code": "VALIDATION_ERROR", "message": "; ".join(messages), "messages": messages})


@app.exception_handler(Exception)
async def server_error_handler(request: Request, exc: Exception):
    logger.exception("[server] %s %s failed", request.method, request.url.path)
    return _error(500, {"code": "SERVER_ERROR", "message": "Server Error"})


@app.on_event("startup")
async def on_startup():
    await init_db()
    # Connections never survive a restart
    await reset_presence()
    logger.info("[startup] %s ready (env=%s)", settings.APP_NAME, settings.env)


@app.on_event("shutdown")
async def on_shutdown():
    await app.state.presence.shutdown()
    await close_db()


# REST
app.include_router(auth.router, prefix="/api/v1")
app.include_router(users.router, prefix="/api/v1")
app.include_router(todos.router, prefix="/api/v1")
app.include_router(teams.router, prefix="/api/v1")
app.include_router(projects.router, prefix="/api/v1")
app.include_router(messages.router, prefix="/api/v1")

# WebSocket
app.include_router(ws_events_router)


@app.get("/healthz")
def healthz():
    return {"ok": True}
