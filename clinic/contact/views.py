from typing import Any, Dict

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from clinic.contact import service as contact_service
from clinic.utils.rate_limit import optional_rate_limit

router = APIRouter(prefix="/api", tags=["Contact"])

class ContactRequest(BaseModel):
    name: str = ""
    email: str = ""
    message: str = ""

# module clinic.contact.views
@router.post("/contact", dependencies=[Depends(optional_rate_limit(times=5, seconds=60))])
def contact(req: ContactRequest) -> Dict[str, Any]:
    """Formulaire de contact (validation/nettoyage dans contact_service)."""
    return contact_service.send_contact_message(req.name, req.email, req.message)
