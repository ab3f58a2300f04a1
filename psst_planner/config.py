import os

from dotenv import load_dotenv

load_dotenv()

# Environment default credential, used when no user key is persisted.
ENV_API_KEY = os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY")

# Values treated as "no key"; an unset frontend env var renders as "undefined".
PLACEHOLDER_KEYS = {"", "undefined"}

GEMINI_BASE_URL = os.getenv(
    "GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"
)

PLAN_MODEL = os.getenv("PLAN_MODEL", "gemini-3-pro-preview")
IMAGE_MODEL = os.getenv("IMAGE_MODEL", "gemini-3-pro-image-preview")
PROBE_MODEL = os.getenv("PROBE_MODEL", "gemini-3-flash-preview")

PLAN_MAX_OUTPUT_TOKENS = int(os.getenv("PLAN_MAX_OUTPUT_TOKENS", "32768"))
PLAN_THINKING_BUDGET = int(os.getenv("PLAN_THINKING_BUDGET", "16000"))

IMAGE_ASPECT_RATIO = os.getenv("IMAGE_ASPECT_RATIO", "16:9")
IMAGE_SIZE = os.getenv("IMAGE_SIZE", "1K")

# Transport-level bound only; plan generation with a large thinking budget
# routinely takes minutes.
LLM_TIMEOUT_SECONDS = float(os.getenv("LLM_TIMEOUT_SECONDS", "300"))

# Inline request data is capped by the service; keep single files well below.
MAX_ATTACHMENT_BYTES = int(os.getenv("MAX_ATTACHMENT_MB", "15")) * 1024 * 1024

CREDENTIAL_FILE = os.path.expanduser(
    os.getenv("CREDENTIAL_FILE", "~/.psst_planner/gemini_api_key")
)

EXPORT_FILENAME_PREFIX = os.getenv("EXPORT_FILENAME_PREFIX", "SS연구소_사업계획서_")


HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))


def is_placeholder(key):
    return key is None or key.strip() in PLACEHOLDER_KEYS
