"""Retired cron hooks kept so old schedulers get a clear answer."""
from fastapi import APIRouter, HTTPException, status

router = APIRouter(prefix="/cron", tags=["cron"])


@router.get("/check-boletos")
def check_boletos():
    """PIX status polling was replaced by scripts/update_overdue_boletos.py."""
    raise HTTPException(
        status_code=status.HTTP_410_GONE,
        detail="Boleto status polling was retired; run scripts/update_overdue_boletos.py instead",
    )
