from fastapi import APIRouter, status
from pydantic import BaseModel

router = APIRouter()
group_tags = ["health"]


class HealthCheck(BaseModel):
    status: str = "ok"


@router.get(
    "/health",
    tags=group_tags,
    response_model=HealthCheck,
    status_code=status.HTTP_200_OK,
)
def get_health() -> HealthCheck:
    return HealthCheck(status="ok")
