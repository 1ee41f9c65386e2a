from pydantic import BaseModel, Field

from challenge_api.config import settings


# --- Service arguments ---

class ReadChallengesArgs(BaseModel):
    user_token: str | None = None
    page: int = Field(ge=1)
    per_page: int = Field(ge=1, le=settings.MAX_PAGE_SIZE)


class GetChallengesArgs(BaseModel):
    page: int = Field(1, ge=1)
    per_page: int = Field(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE)
