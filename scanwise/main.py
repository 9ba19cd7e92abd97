import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from scanwise import settings
from scanwise.api.routes import router as api_router
from scanwise.api.ws import router as ws_router

# Configure root logger so our app messages are visible
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s  %(name)-30s  %(levelname)-7s  %(message)s",
    datefmt="%H:%M:%S",
)
# Suppress noisy third-party HTTP logs
for _noisy in ("httpx", "httpcore", "openai"):
    logging.getLogger(_noisy).setLevel(logging.WARNING)

app = FastAPI(title="ScanWise Backend")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # tighten to the deployed frontend origin in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)
app.include_router(ws_router)


@app.get("/health")
def health():
    return {"status": "ok"}


@app.on_event("startup")
async def _startup():
    logger = logging.getLogger("scanwise.startup")
    if settings.OPENAI_API_KEY:
        logger.info("✅ OpenAI key configured – model=%s vision=%s", settings.LLM_MODEL, settings.VISION_MODEL)
    else:
        logger.warning("⚠️  OPENAI_API_KEY not set – every model call will return an error envelope")
