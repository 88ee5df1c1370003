import json
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from bhxh_gateway.core.modules.session.models import Unit
from bhxh_gateway.errors import DataShapeError


def parse_units(raw: Any) -> list[Unit]:
    """Normalize the login response's ``dsDonVi`` into a list of units.

    The portal sends either a JSON-encoded string or an already decoded array.
    """
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            raise DataShapeError(f"dsDonVi is not valid JSON: {e}") from e

    if not isinstance(raw, list):
        raise DataShapeError(f"dsDonVi must be a list, got {type(raw).__name__}")

    if not all(isinstance(item, dict) for item in raw):
        raise DataShapeError("dsDonVi must contain objects only")

    try:
        return [Unit.model_validate(item) for item in raw]
    except PydanticValidationError as e:
        raise DataShapeError(f"dsDonVi contains an invalid unit: {e}") from e


def select_unit(units: list[Unit], target_code: str | None) -> Unit:
    """Pick the unit matching ``target_code``, falling back to the first one."""
    if not units:
        raise DataShapeError("No unit found in login response")

    if target_code:
        for unit in units:
            if unit.matches(target_code):
                return unit

    return units[0]
