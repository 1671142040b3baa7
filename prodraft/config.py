"""Centralized configuration for the ProDraft API.

All settings are read once from the environment at import time so the
rate-limit window, provider selection and generation defaults stay fixed
for the lifetime of the process.
"""
import os
from pathlib import Path

# Try to load .env file from project root
try:
    from dotenv import load_dotenv
    env_path = Path(__file__).resolve().parents[1] / ".env"
    load_dotenv(env_path)
except ImportError:
    pass

# Provider selection (gemini | groq | ollama)
LLM_PROVIDER = os.getenv("LLM_PROVIDER", "gemini").lower().strip()

# Generation Configuration
GENERATION_MAX_TOKENS = int(os.getenv("GENERATION_MAX_TOKENS", "4096"))
GENERATION_TEMPERATURE = float(os.getenv("GENERATION_TEMPERATURE", "0.7"))
VARIATION_COUNT = int(os.getenv("VARIATION_COUNT", "6"))
DEFAULT_FORMAT = "email"

# Input limits
MAX_INPUT_LENGTH = int(os.getenv("MAX_INPUT_LENGTH", "20000"))

# Rate limiting for /api/generate (fixed window, per client identifier)
RATE_LIMIT_REQUESTS = int(os.getenv("RATE_LIMIT_REQUESTS", "20"))
RATE_LIMIT_WINDOW_SECONDS = float(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "60"))
# Sweep expired windows every N admissions; 0 keeps every entry until overwritten
RATE_LIMIT_SWEEP_EVERY = int(os.getenv("RATE_LIMIT_SWEEP_EVERY", "0"))

# slowapi limit for the cheaper routes
RATE_LIMIT_EXPORT = os.getenv("RATE_LIMIT_EXPORT", "30/minute")

# Export Configuration
EXPORT_TITLE = "ProDraft AI Export"
EXPORT_DEFAULT_FILENAME = "prodraft-export"

# CORS
CORS_ORIGINS = [
    o.strip()
    for o in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
    if o.strip()
]

# Gemini Configuration
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")

# Groq Configuration
GROQ_BASE_URL = os.getenv("GROQ_BASE_URL", "https://api.groq.com/openai/v1")
GROQ_MODEL = os.getenv("GROQ_MODEL", "llama-3.3-70b-versatile")

# Ollama Configuration
OLLAMA_BASE_URL = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")
OLLAMA_MODEL = os.getenv("OLLAMA_MODEL", "llama3")

# Retry Configuration (shared by all provider clients)
LLM_MAX_RETRIES = int(os.getenv("LLM_MAX_RETRIES", "3"))
LLM_BACKOFF_MIN = float(os.getenv("LLM_BACKOFF_MIN", "1"))
LLM_BACKOFF_MAX = float(os.getenv("LLM_BACKOFF_MAX", "30"))
LLM_REQUEST_TIMEOUT = float(os.getenv("LLM_REQUEST_TIMEOUT", "120"))
