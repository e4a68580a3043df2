from pathlib import Path
import os


class Settings:
    """
    Global application configuration
    """

    # Project root
    BASE_DIR = Path(__file__).resolve().parent.parent

    # Uploaded data sources live here, one folder per source
    DATA_ROOT = Path(os.getenv("DATA_ROOT", str(BASE_DIR / "data" / "sources")))

    # Upload settings
    UPLOAD_EXTENSIONS = {".csv", ".xlsx", ".xls"}
    EXCEL_ENGINE = "openpyxl"
    MAX_UPLOAD_MB = int(os.getenv("MAX_UPLOAD_MB", "25"))

    # Safety limits
    MAX_ROWS = int(os.getenv("MAX_ROWS", "5000"))
    MAX_COLUMNS = 200
    PREVIEW_ROWS = 10

    # Samples handed to the LLM
    CHART_SAMPLE_ROWS = 20
    INSIGHT_SAMPLE_ROWS = 50
    CHAT_SAMPLE_ROWS = 50
    QUESTION_SAMPLE_ROWS = 20
    VALIDATION_SAMPLE_ROWS = 20
    SUGGESTED_QUESTIONS = 6

    # Chat history kept per session
    MAX_CHAT_HISTORY = 50

    # Dashboard sessions
    SESSION_TTL_MINUTES = int(os.getenv("SESSION_TTL_MINUTES", "60"))

    # Drill-down
    DRILL_CHART_TYPES = ("bar", "line", "pie", "area")

    # Environment
    ENV = os.getenv("ENV", "development")
    DEBUG = ENV != "production"


settings = Settings()
