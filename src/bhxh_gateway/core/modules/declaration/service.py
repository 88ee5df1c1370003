import copy
from typing import Any

import structlog
from pydantic import BaseModel, Field

from bhxh_gateway.core.core import Service
from bhxh_gateway.core.modules.portal.models import PortalCode
from bhxh_gateway.core.modules.session.models import PortalCredentials, Session
from bhxh_gateway.errors import ValidationError

logger = structlog.get_logger(__name__)

D02_FORM = "D02-TS"


class DeclarationResult(BaseModel):
    """Outcome of a declaration submission (portal code 084)."""

    success: bool
    message: str
    procedure_id: int | str | None = Field(None, alias="thuTucId")
    data: Any = None


def normalize_d02_salaries(form: dict[str, Any]) -> dict[str, Any]:
    """The portal only accepts ``tienLuong`` as a string in the D02-TS employee rows."""
    section = form.get(D02_FORM)
    if not isinstance(section, dict) or not isinstance(section.get("nguoiLaoDong"), list):
        return form
    rows = []
    for row in section["nguoiLaoDong"]:
        if isinstance(row, dict) and isinstance(row.get("tienLuong"), int | float) and not isinstance(row["tienLuong"], bool):
            row = {**row, "tienLuong": str(row["tienLuong"])}
        rows.append(row)
    return {**form, D02_FORM: {**section, "nguoiLaoDong": rows}}


class DeclarationService(Service):
    """Monthly contribution declarations (D02-TS, TK1-TS, D01-TS forms)."""

    async def submit(self, credentials: PortalCredentials | None, form: dict[str, Any]) -> DeclarationResult:
        procedure = form.get("thuTuc")
        if not isinstance(procedure, dict):
            raise ValidationError("thuTuc is required")
        form = normalize_d02_salaries(copy.deepcopy(form))

        def payload(session: Session) -> dict[str, Any]:
            return {
                **form,
                "thuTuc": {
                    **procedure,
                    "maDonVi": session.unit.code or procedure.get("maDonVi"),
                    "maCoQuan": session.unit.agency_code or procedure.get("maCoQuan"),
                },
            }

        logger.info("declaration_submitting", period=procedure.get("kyKeKhai"))
        response = await self.core.services.portal.call(
            PortalCode.SUBMIT_DECLARATION, credentials, payload, user_context=False
        )
        result = response.data if isinstance(response.data, dict) else {}
        return DeclarationResult(
            success=result.get("success", True) is not False,
            message=str(result.get("message") or "Form submitted successfully"),
            thuTucId=result.get("thuTucId"),
            data=response.data,
        )
