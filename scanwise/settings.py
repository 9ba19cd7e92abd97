import os
from dotenv import load_dotenv

load_dotenv()

OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
LLM_MODEL = os.getenv("LLM_MODEL", "gpt-4.1-mini")
VISION_MODEL = os.getenv("VISION_MODEL", LLM_MODEL)
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Seconds between automatic captures while the session is idle
SCAN_INTERVAL_S = float(os.getenv("SCAN_INTERVAL_S", "7"))
# Upper bound on a single model call; expiry counts as a transport failure
REQUEST_TIMEOUT_S = float(os.getenv("REQUEST_TIMEOUT_S", "30"))

# Local webcam: rear-facing device first, then any of the fallbacks
CAMERA_PREFERRED_INDEX = int(os.getenv("CAMERA_PREFERRED_INDEX", "1"))
CAMERA_FALLBACK_INDICES = [
    int(i) for i in os.getenv("CAMERA_FALLBACK_INDICES", "0").split(",") if i.strip()
]
JPEG_QUALITY = int(os.getenv("JPEG_QUALITY", "85"))

DEFAULT_LANGUAGE = os.getenv("DEFAULT_LANGUAGE", "en")
SUPPORTED_LANGUAGES = ("en", "mr")
