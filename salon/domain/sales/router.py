"""Sales router - register and query sales"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import CurrentUser, get_current_user, require_permission
from ...database import get_db
from ...errors import ValidationError
from ...permissions import Capability
from ..scheduling.router import parse_id_list
from .schemas import SaleCreate, SaleCreated, SaleResponse, SaleStatusUpdate
from .service import SalesService, sale_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sales", tags=["Sales"])


def get_sales_service(db: Session = Depends(get_db)) -> SalesService:
    return SalesService(db)


@router.get("", response_model=list[SaleResponse])
async def list_sales(
    period: Optional[str] = Query(None, description="last7, month, 3months, 6months, year, lastyear, custom"),
    startDate: Optional[str] = Query(None),
    endDate: Optional[str] = Query(None),
    clientIds: Optional[str] = Query(None, description="Comma separated client ids"),
    client: Optional[str] = Query(None, description="Client name search"),
    payment: Optional[str] = Query(None, description="Payment method name or id"),
    sort: str = Query("date"),
    current_user: CurrentUser = Depends(get_current_user),
    service: SalesService = Depends(get_sales_service),
):
    if sort not in ("date", "value"):
        raise ValidationError("sort must be date or value")
    orders = service.list_sales(
        current_user,
        period=period,
        start_date=startDate,
        end_date=endDate,
        client_ids=parse_id_list(clientIds, "clientIds"),
        client_name=client.strip() if client else None,
        payment=payment.strip() if payment else None,
        sort=sort,
    )
    return [sale_response(o) for o in orders]


@router.get("/{sale_id}", response_model=SaleResponse)
async def get_sale(
    sale_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    service: SalesService = Depends(get_sales_service),
):
    return sale_response(service.get_sale(sale_id, current_user))


@router.post("", response_model=SaleCreated, status_code=201)
def create_sale(
    data: SaleCreate,
    current_user: CurrentUser = Depends(require_permission(Capability.SALES_CREATE)),
    service: SalesService = Depends(get_sales_service),
):
    return service.create_sale(data, current_user)


@router.patch("/{sale_id}/status", response_model=SaleResponse)
async def correct_sale_status(
    sale_id: int,
    data: SaleStatusUpdate,
    current_user: CurrentUser = Depends(require_permission(Capability.SALES_CORRECT)),
    service: SalesService = Depends(get_sales_service),
):
    return sale_response(service.update_status(sale_id, data.status))
