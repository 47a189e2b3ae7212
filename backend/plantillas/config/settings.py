import os
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# Cargar variables de entorno desde el archivo .env
load_dotenv(encoding="utf-8")

class Settings(BaseSettings):
    # App
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    PREFS_PATH: str = os.getenv("PREFS_PATH", "./data/prefs.json")

    # Backend de reportes (API REST externa)
    API_URL: str = os.getenv("API_URL", "http://localhost:3001/api")
    API_TIMEOUT: float = float(os.getenv("API_TIMEOUT", 30.0))

    # Validadores
    VALIDATORS_PAGE_SIZE: int = int(os.getenv("VALIDATORS_PAGE_SIZE", 200))  # Límite por página al cargar validadores
    VALIDATORS_MAX_PAGES: int = int(os.getenv("VALIDATORS_MAX_PAGES", 10))

    # Excel
    VALIDATION_MAX_ROWS: int = int(os.getenv("VALIDATION_MAX_ROWS", 1000))  # Última fila con validación de datos
    COLUMN_WIDTH: int = int(os.getenv("COLUMN_WIDTH", 20))
    PROMPT_MAX_CHARS: int = int(os.getenv("PROMPT_MAX_CHARS", 220))
    NOTE_MAX_CHARS: int = int(os.getenv("NOTE_MAX_CHARS", 120))
    UPLOAD_MAX_BYTES: int = int(os.getenv("UPLOAD_MAX_BYTES", 30 * 1024 * 1024))

    # API
    API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
    API_PORT: int = int(os.getenv("API_PORT", 8000))

    model_config = {
        "env_file": ".env",
        "extra": "ignore"  # Ignorar campos adicionales en lugar de lanzar un error
    }

settings = Settings()
