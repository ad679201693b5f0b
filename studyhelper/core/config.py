from pydantic import SecretStr
from pydantic_settings import BaseSettings
from typing import Optional

class Settings(BaseSettings):
    # App Config
    APP_NAME: str = "Study Helper Quiz Engine"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    LOG_DIR: Optional[str] = None
    
    # Groq (generative text service)
    GROQ_API_KEY: Optional[SecretStr] = None
    GROQ_BASE_URL: Optional[str] = None
    GROQ_MODEL: str = "llama-3.1-8b-instant"
    GROQ_TIMEOUT: Optional[float] = None # None keeps the SDK default
    
    # Sampling
    QUIZ_TEMPERATURE: float = 0.7
    QUIZ_MAX_TOKENS: int = 3000
    GRADING_TEMPERATURE: float = 0.3
    GRADING_MAX_TOKENS: int = 2000
    
    # External collaborators
    TASK_PROVIDER_URL: Optional[str] = None
    RESOURCE_PROVIDER_URL: Optional[str] = None
    PROVIDER_TIMEOUT: float = 30.0
    
    # In-memory quiz sessions; the least recently used are closed beyond this
    MAX_SESSIONS: int = 500
    
    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"

settings = Settings()
