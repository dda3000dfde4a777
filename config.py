import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()

@dataclass
class Settings:
    # Storage
    data_file: str = os.getenv("LIBRARY_DATA_FILE", "books.json")
    seed_sample_data: bool = os.getenv("LIBRARY_SEED_SAMPLES", "True").lower() in ("true", "1", "yes")

    # Lending
    loan_days: int = int(os.getenv("LIBRARY_LOAN_DAYS", "14"))
    default_borrower: str = os.getenv("LIBRARY_DEFAULT_BORROWER", "Library Patron")

    # Application
    app_name: str = os.getenv("APP_NAME", "Library Inventory")
    app_version: str = os.getenv("APP_VERSION", "1.0.0")
    log_level: str = os.getenv("LOG_LEVEL", "WARNING").upper()


settings = Settings()
