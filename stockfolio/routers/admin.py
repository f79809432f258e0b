from fastapi import APIRouter, Depends

from stockfolio.dependencies import AppContext, CurrentUser, get_context, require_admin
from stockfolio.models import Holding
from stockfolio.schemas import ErrorResponse
from stockfolio.telemetry import get_logger

logger = get_logger(__name__)

router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
    responses={403: {"model": ErrorResponse, "description": "Admin access only"}},
)


@router.get("/user-portfolios", response_model=list[Holding])
async def list_user_portfolios(
    current_user: CurrentUser = Depends(require_admin),
    context: AppContext = Depends(get_context),
) -> list[Holding]:
    records = await context.holdings_store.list_all()
    logger.info("admin_portfolios_listed", extra={"owner_id": current_user.owner_id, "count": len(records)})
    return records
