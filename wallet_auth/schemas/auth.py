from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ChallengeResponse(BaseModel):
    """Response model for challenge issuance - output"""

    address: str
    nonce: str
    message: str


class VerifyRequest(BaseModel):
    """Request model for signature verification - input validation

    Fields default to empty so that missing values are reported as "bad request"
    by the login service instead of a validation error.
    """

    address: str = Field(default="", description="Wallet address")
    signature: str = Field(default="", description="personal_sign signature of the challenge message")
    nonce: str = Field(default="", description="Nonce returned with the challenge")


class VerifyResponse(BaseModel):
    """Response model for a successful login - output"""

    ok: bool = True
    address: str


class SessionResponse(BaseModel):
    """Response model for the current session, timestamps in epoch milliseconds"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    address: str
    created_at: int
    last_login_at: int


class OkResponse(BaseModel):
    ok: bool = True


class ErrorResponse(BaseModel):
    error: str
