import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from . import config
from .errors import YouVoteError
from .routes.auth_routes import router as auth_router
from .routes.candidate_routes import router as candidate_router
from .routes.election_routes import router as election_router
from .routes.vote_routes import vote_router

logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(title="YouVote - Election Voting API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(YouVoteError)
async def youvote_error_handler(request: Request, exc: YouVoteError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"success": False, "error": exc.message})


app.include_router(auth_router)
app.include_router(election_router)
app.include_router(candidate_router)
app.include_router(vote_router)


# --- General Endpoints ---

@app.get("/", tags=["Root"])
def read_root():
    return {"message": "Welcome to the YouVote API"}


@app.get("/health", tags=["Root"])
async def health_check():
    return {"status": "healthy", "database": "MongoDB"}


@app.get("/favicon.ico", include_in_schema=False)
async def favicon():
    return Response(status_code=204)
