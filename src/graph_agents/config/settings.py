"""
Configuration settings and constants shared by the agents.
"""

import os
import logging
from langchain_google_genai import HarmBlockThreshold, HarmCategory

# API Keys
GEMINI_API_KEY = os.environ.get("GEMINI_API_KEY") or os.environ.get("GOOGLE_API_KEY")
TAVILY_API_KEY = os.environ.get("TAVILY_API_KEY")

# Model names are "<provider>/<model>"; a bare model name uses DEFAULT_PROVIDER
DEFAULT_PROVIDER = "google_genai"
DEFAULT_LLM_MODEL = "google_genai/gemini-2.5-flash"
ROCK_AGENT_MODEL = os.environ.get("ROCK_AGENT_MODEL", DEFAULT_LLM_MODEL)
WORKCATION_MODEL = os.environ.get("WORKCATION_MODEL", DEFAULT_LLM_MODEL)

DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_SEARCH_RESULTS = 5
DEFAULT_LANGUAGE = "ja"

# Logging Configuration
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - [%(levelname)s] - %(message)s'
)

def validate_api_keys(require_search: bool = False) -> bool:
    """Validate that the API keys the selected agent needs are present."""
    missing_keys = []

    if not GEMINI_API_KEY:
        missing_keys.append("GEMINI_API_KEY")
        logging.error("GEMINI_API_KEY not found. The default Gemini model will not function.")
    if require_search and not TAVILY_API_KEY:
        missing_keys.append("TAVILY_API_KEY")
        logging.error("TAVILY_API_KEY not found. Web search tools will fail.")

    if missing_keys:
        logging.error(f"Missing required API keys: {', '.join(missing_keys)}")
        return False

    return True

# --- LLM Configuration ---
GEMINI_MODEL_CONFIG = {
    "temperature": DEFAULT_TEMPERATURE,
    "safety_settings": {
        HarmCategory.HARM_CATEGORY_HARASSMENT: HarmBlockThreshold.BLOCK_NONE,
        HarmCategory.HARM_CATEGORY_HATE_SPEECH: HarmBlockThreshold.BLOCK_NONE,
        HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT: HarmBlockThreshold.BLOCK_NONE,
        HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT: HarmBlockThreshold.BLOCK_NONE,
    }
}
