from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Either a filesystem path (.csv / .xlsx / .xls) or an http(s) URL
    ACTIVITY_SOURCE: str = "data/Activity-Report.csv"
    ATTENDANCE_SOURCE: str = "data/Post-basis-attendance.csv"
    LOAD_TIMEOUT_SEC: float = 10.0

    LOCATION_ISSUE_THRESHOLD_M: int = 50
    ON_TIME_ATTENDANCE_LABEL: str = "On-time"
    ON_TIME_ACTIVITY_LABEL: str = "On Time"

    # Exports from the scanning devices use month-first dates
    DATE_DAYFIRST: bool = False

    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: list[str] = ["http://localhost:5173", "http://localhost:3000"]


settings = Settings()
