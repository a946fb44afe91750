from pydantic import model_validator
from pydantic_settings import BaseSettings
from dotenv import load_dotenv
from pathlib import Path
import os


load_dotenv()


class Settings(BaseSettings):
    app_name: str = "Halal Chain Ledger API"
    debug: bool = False
    database_url: str = "sqlite:///./ledger.db"
    host: str = "127.0.0.1"
    port: int = 8000
    secret_key: str = ""
    admin_address: str = ""
    access_token_expire_minutes: int = 15
    allowed_hosts: str = ""
    api_prefix: str = "/api/v1"
    static_dir: Path = Path(__file__).parent.parent.parent / "static"
    # Host encoded into printed QR codes
    public_url: str = "http://localhost:8000"
    log_file: str = "logs/application.log"
    ledger_log_file: str = "logs/ledger_events.log"

    @model_validator(mode='after')
    def normalize(self) -> 'Settings':
        self.admin_address = self.admin_address.strip()
        self.public_url = self.public_url.rstrip("/")
        self.api_prefix = "/" + self.api_prefix.strip("/")
        return self

    @property
    def public_trace_url(self) -> str:
        return f"{self.public_url}{self.api_prefix}/trace"


settings = Settings()

if not settings.secret_key:
    raise RuntimeError("Secret key not configured.")

if not settings.admin_address:
    raise RuntimeError("Ledger admin address not configured.")


os.makedirs(settings.static_dir, exist_ok=True)
