"""
Business rules endpoints.

Read-only answers for the checkout: opening hours, the order rules
summary (fees and warnings per delivery type) and selectable dates.
No identity is required.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from atacado.services import business_rules
from atacado.utils.clock import BRASILIA_TZ, now_brasilia, to_brasilia

router = APIRouter(prefix="/business-rules", tags=["business-rules"])


def _moment(at: Optional[datetime]) -> datetime:
    """Naive query datetimes are Brasília wall-clock time."""
    if at is None:
        return now_brasilia()
    if at.tzinfo is None:
        return at.replace(tzinfo=BRASILIA_TZ)
    return to_brasilia(at)


@router.get("/hours")
def business_hours(at: Optional[datetime] = None):
    moment = _moment(at)
    result = business_rules.check_business_hours(moment)
    result["hours_text"] = business_rules.BUSINESS_HOURS_TEXT
    return result


@router.get("/order-summary")
def order_summary(
    delivery_type: str = Query(...),
    total_value: Decimal = Query(default=Decimal("0"), ge=0),
    package_count: int = Query(default=1, ge=0),
    at: Optional[datetime] = None,
):
    try:
        return business_rules.get_order_rules_summary(delivery_type, total_value, package_count, _moment(at))
    except business_rules.UnknownDeliveryType as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/dates")
def date_constraints(
    delivery_type: str = Query(...),
    selected_date: Optional[date] = None,
    at: Optional[datetime] = None,
):
    moment = _moment(at)
    try:
        result = business_rules.get_date_constraints(delivery_type, moment)
    except business_rules.UnknownDeliveryType as e:
        raise HTTPException(status_code=400, detail=str(e))
    if selected_date is not None:
        if delivery_type == business_rules.PICKUP:
            result["warnings"] = business_rules.get_pickup_warnings(selected_date, moment)
            result["is_valid"] = not business_rules.is_sunday(selected_date) and selected_date >= moment.date()
        else:
            result["warnings"] = business_rules.get_delivery_warnings(selected_date, moment)
            result["is_valid"] = business_rules.can_deliver_on_date(selected_date, moment)
        result["selected_date"] = selected_date.isoformat()
    return result
