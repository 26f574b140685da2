from pydantic_settings import BaseSettings

from dotenv import load_dotenv

load_dotenv()  # load .env file

class Settings(BaseSettings):
    SUPABASE_URL: str = ""
    SUPABASE_SERVICE_KEY: str = ""

    ATTENDANCE_TABLE: str = "daily_attendance"
    CLASS_STUDENTS_TABLE: str = "class_students"
    PROFILES_TABLE: str = "profiles"

    # Single upsert keyed on (student_id, class_id, date). Needs the unique
    # constraint on the attendance table; False falls back to check-then-act.
    ATTENDANCE_ATOMIC_UPSERT: bool = True
    ATTENDANCE_EDIT_GRACE_DAYS: int = 3

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"

settings = Settings()
