import json
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve .env from the project root so it loads regardless of cwd
_BACKEND_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _BACKEND_ROOT / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=(str(_ENV_FILE), ".env", "../.env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # CORS
    cors_origins: str = "http://localhost:3000"

    # Calendar (system of record)
    calendar_id: str = "primary"
    timezone: str = "Europe/Bratislava"
    event_store_backend: Literal["google", "database"] = "google"
    # Service account JSON, either inline or as a file path
    google_credentials_json: str = ""
    google_application_credentials: str = ""

    # Local SQL-backed event store (development, integration tests)
    database_url: str = "sqlite:///./calendar.db"

    # Business rules
    work_days: list[int] = [0, 1, 2, 3, 4]  # Monday..Friday, Python weekday()
    min_advance_hours: int = 1
    max_advance_days: int = 30
    vacation_keyword: str = "DOVOLENKA"
    holidays_enabled: bool = True
    holidays_country: str = "SK"

    # Search windows
    soonest_days_to_search: int = 7
    alternative_days_to_search: int = 5
    max_alternative_days: int = 5
    alternative_slots_per_day: int = 3
    suggestion_slot_count: int = 5

    # JSON file replacing the built-in appointment type table
    appointment_types_file: str = ""

    # SMS (delivery itself is handled by the gateway collaborator)
    sms_enabled: bool = False
    sms_sender_name: str = "Rehacentrum Humenné"

    # Shared secret for the voice webhook; empty disables the check
    webhook_secret: str = ""

    # Env
    env: str = "development"

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


settings = Settings()


def _minutes(hhmm: str) -> int:
    hours, minutes = hhmm.split(":")
    return int(hours) * 60 + int(minutes)


class ScheduleWindow(BaseModel):
    start: str = Field(pattern=r"^\d{2}:\d{2}$")
    end: str = Field(pattern=r"^\d{2}:\d{2}$")
    interval: int = Field(gt=0)

    @model_validator(mode="after")
    def _check_order(self) -> "ScheduleWindow":
        if self.end_minutes <= self.start_minutes:
            raise ValueError(f"Schedule window {self.start}-{self.end} ends before it starts")
        return self

    @property
    def start_minutes(self) -> int:
        return _minutes(self.start)

    @property
    def end_minutes(self) -> int:
        return _minutes(self.end)

    def contains(self, minutes: int) -> bool:
        return self.start_minutes <= minutes < self.end_minutes


class AppointmentType(BaseModel):
    key: str
    name: str
    schedule: list[ScheduleWindow]
    daily_limit: int
    duration: int = 30
    price: int = 0
    currency: str = "EUR"
    insurance: bool = False
    color: str = "1"
    requirements: list[str] = []
    order_numbers: bool = True

    @property
    def price_display(self) -> str:
        return f"{self.price}€"


_DEFAULT_APPOINTMENT_TYPES: list[dict] = [
    {
        "key": "sportova_prehliadka",
        "name": "Športová prehliadka",
        "schedule": [{"start": "07:00", "end": "08:40", "interval": 20}],
        "daily_limit": 5,
        "duration": 20,
        "price": 130,
        "insurance": False,
        "color": "11",
        "requirements": [
            "Fasting (8 hours before examination)",
            "Bring food and water for after examination",
            "Sports clothes and towel",
            "Cash payment required (130€)",
        ],
        # Walk-in sports exams are not part of the numbered queue
        "order_numbers": False,
    },
    {
        "key": "vstupne_vysetrenie",
        "name": "Vstupné vyšetrenie",
        "schedule": [
            {"start": "09:00", "end": "11:30", "interval": 10},
            {"start": "13:00", "end": "15:00", "interval": 10},
        ],
        "daily_limit": 50,
        "duration": 30,
        "price": 0,
        "insurance": True,
        "color": "1",
        "requirements": [
            "Referral slip (mandatory)",
            "Previous medical reports if available",
            "Insurance card",
        ],
        "order_numbers": True,
    },
    {
        "key": "kontrolne_vysetrenie",
        "name": "Kontrolné vyšetrenie",
        "schedule": [
            {"start": "09:00", "end": "11:30", "interval": 10},
            {"start": "13:00", "end": "15:00", "interval": 10},
        ],
        "daily_limit": 50,
        "duration": 30,
        "price": 0,
        "insurance": True,
        "color": "2",
        "requirements": [
            "Insurance card",
            "Latest test results and medical reports",
            "Previous examination documentation",
        ],
        "order_numbers": True,
    },
    {
        "key": "zdravotnicke_pomocky",
        "name": "Zdravotnícke pomôcky",
        "schedule": [
            {"start": "09:00", "end": "11:30", "interval": 10},
            {"start": "13:00", "end": "15:00", "interval": 10},
        ],
        "daily_limit": 1,
        "duration": 30,
        "price": 0,
        "insurance": True,
        "color": "3",
        "requirements": [
            "Medical reports",
            "Old aids for inspection if applicable",
            "Insurance card",
        ],
        "order_numbers": True,
    },
    {
        "key": "konzultacia",
        "name": "Konzultácia",
        "schedule": [
            {"start": "07:30", "end": "09:00", "interval": 10},
            {"start": "15:00", "end": "16:00", "interval": 10},
        ],
        "daily_limit": 20,
        "duration": 30,
        "price": 30,
        "insurance": False,
        "color": "4",
        "requirements": [
            "Cash payment (30€)",
            "Medical documents if available",
        ],
        "order_numbers": True,
    },
]


def load_appointment_types(path: str = "") -> dict[str, AppointmentType]:
    """Build the type table from a JSON list (file) or the built-in defaults."""
    if path:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    else:
        raw = _DEFAULT_APPOINTMENT_TYPES
    types = [AppointmentType.model_validate(item) for item in raw]
    return {t.key: t for t in types}


@lru_cache
def get_appointment_types() -> dict[str, AppointmentType]:
    return load_appointment_types(settings.appointment_types_file)
