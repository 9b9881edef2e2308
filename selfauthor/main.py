import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from selfauthor import __version__
from selfauthor.api import chat, users
from selfauthor.config import get_settings
from selfauthor.utils import db

# =====================================================
#  selfauthor API: persona + rolling-summary chat
# =====================================================

settings = get_settings()
logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="[%(asctime)s] %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger("selfauthor")

app = FastAPI(title="selfauthor API", version=__version__)
db.init()

# -----------------------------------------------------
#  CORS (Env + Fallback)
# -----------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(users.router)
app.include_router(chat.router)


# -----------------------------------------------------
#  Health
# -----------------------------------------------------
@app.get("/")
@app.get("/health")
@app.get("/healthz")
def health():
    return {"status": "ok"}


def run():
    import uvicorn

    logger.info("listening on http://%s:%s", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
