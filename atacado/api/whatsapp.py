"""
WhatsApp endpoints backed by the Evolution API.

The instance is shared by the deployment; every route needs
``whatsapp_enabled`` and owner/admin rights except the status probe.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from atacado.api.deps import (
    OrgAccess,
    get_manage_access,
    get_staff_access,
    require_feature,
    translate_service_errors,
)
from atacado.db import schemas
from atacado.db.database import get_db
from atacado.services import reminder_service, whatsapp_messages
from atacado.services.evolution_api import get_evolution_client

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/whatsapp",
    tags=["whatsapp"],
    dependencies=[Depends(require_feature("whatsapp_enabled"))],
)


def _upstream_error(result: dict) -> HTTPException:
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=result.get("error") or "Evolution API error")


@router.get("/status")
def whatsapp_status(access: OrgAccess = Depends(get_staff_access)):
    client = get_evolution_client()
    reachable = client.fetch_instances()
    if not reachable["success"]:
        return {"api_reachable": False, "connected": False, "state": "close", "error": reachable.get("error")}
    state = client.get_connection_state()
    return {
        "api_reachable": True,
        "connected": bool(state.get("connected")),
        "state": state.get("state"),
        "phone": state.get("phone"),
        "instance": client.config.instance_name,
    }


@router.post("/connect")
def whatsapp_connect(access: OrgAccess = Depends(get_manage_access)):
    """Create or reuse the instance and return the pairing QR code."""
    result = get_evolution_client().create_instance()
    if not result["success"]:
        raise _upstream_error(result)
    return result


@router.post("/logout")
def whatsapp_logout(access: OrgAccess = Depends(get_manage_access)):
    result = get_evolution_client().disconnect()
    if not result["success"]:
        raise _upstream_error(result)
    logger.info("whatsapp_logout organization_id=%s user=%s", access.organization_id, access.actor_email)
    return result


@router.post("/send")
def whatsapp_send(payload: schemas.WhatsAppSend, access: OrgAccess = Depends(get_manage_access)):
    result = whatsapp_messages.send_message(payload.number, payload.message, get_evolution_client())
    if not result["success"]:
        raise _upstream_error(result)
    return result


@router.post("/reminders/run")
def run_reminders(
    payload: schemas.ReminderRunRequest,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_manage_access),
):
    """Run the boleto and smart reminder jobs for the active organization."""
    with translate_service_errors():
        return reminder_service.run_reminders(
            db, only=payload.only, dry_run=payload.dry_run, organization_id=access.organization_id
        )
