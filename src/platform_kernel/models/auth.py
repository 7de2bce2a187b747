"""Module defining the TokenData model for access tokens."""

from pydantic import BaseModel, ConfigDict


class TokenData(BaseModel):
    """Pydantic model for token data structure."""

    model_config = ConfigDict(extra="allow")

    access_token: str
    expires_in: int | None = None
    token_type: str | None = None
    scope: str | None = None
