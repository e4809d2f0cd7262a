"""
Central configuration

Purpose: single source of truth for API keys, model names, limits, and
peripheral service settings.

Input: environment variables (a local .env file is loaded first).

Output: module-level constants used by the gateway, the client and the API.

Example: API_KEY=... GEMINI_MODEL=gemini-2.5-flash uvicorn API:create_app --factory
"""
import os

from dotenv import load_dotenv

load_dotenv()

# Model backend
API_KEY = os.getenv("API_KEY")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
GEMINI_ENDPOINT = os.getenv("GEMINI_ENDPOINT", "https://generativelanguage.googleapis.com/v1beta")
LLM_TIMEOUT = float(os.getenv("LLM_TIMEOUT", "60"))
MODEL_SEED = int(os.getenv("MODEL_SEED", "42"))

# Uploads
MAX_UPLOAD_MB = 30
MAX_UPLOAD_BYTES = MAX_UPLOAD_MB * 1024 * 1024
ACCEPTED_MIME_TYPES = ("image/png", "image/jpeg", "application/pdf")

# OTP login
OTP_TTL_SECONDS = int(os.getenv("OTP_TTL_SECONDS", "300"))
OTP_LENGTH = 6

# Mail (left unset -> messages are only logged)
SMTP_HOST = os.getenv("SMTP_HOST")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
SMTP_USER = os.getenv("SMTP_USER")
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
MAIL_FROM = os.getenv("MAIL_FROM", "no-reply@ayurconnect.local")
EXPERT_EMAIL = os.getenv("EXPERT_EMAIL", MAIL_FROM)

# HTTP
PORT = int(os.getenv("PORT", "10000"))
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
BACKEND_URL = os.getenv("BACKEND_URL", f"http://localhost:{PORT}")
CLIENT_TIMEOUT = float(os.getenv("CLIENT_TIMEOUT", "90"))

# WhatsApp order hand-off, country code without '+'
WHATSAPP_NUMBER = os.getenv("WHATSAPP_NUMBER", "910000000000")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
