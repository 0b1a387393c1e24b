from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import get_cors_origins
from app.core.logging import get_logger
from app.db.session import engine, Base
from app.models import User, AuthSession, Project  # noqa: F401
from app.api.auth import router as auth_router
from app.api.chat import router as chat_router
from app.api.projects import router as projects_router

logger = get_logger(__name__)

app = FastAPI(title="KeyMap API")


@app.middleware("http")
async def add_noindex_header(request: Request, call_next):
    """Prevent search engines from indexing this API."""
    response = await call_next(request)
    response.headers["X-Robots-Tag"] = "noindex, nofollow"
    return response


@app.get("/robots.txt", include_in_schema=False)
async def robots_txt():
    """Tell crawlers not to index this site."""
    return Response(
        content="User-agent: *\nDisallow: /\n",
        media_type="text/plain",
    )


@app.get("/health")
def health_check():
    return {"status": "ok"}


_origins = get_cors_origins()
app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins,
    # Cookies need explicit origins; "*" + credentials is rejected by browsers
    allow_credentials=_origins != ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def create_tables():
    Base.metadata.create_all(bind=engine)


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


app.include_router(auth_router)
app.include_router(projects_router)
app.include_router(chat_router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
