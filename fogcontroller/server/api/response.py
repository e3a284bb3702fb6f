"""Response envelope shared by every v2 route."""
from typing import Any, Dict

from fogcontroller.core.common import now_ms

GENERIC_ERROR_MESSAGE = "Hmm, what you have encountered is unexpected. If problem persists, contact app provider."


def ok_response(**data: Any) -> Dict[str, Any]:
    return {"status": "ok", "timestamp": now_ms(), **data}


def failure_response(message: str) -> Dict[str, Any]:
    return {"status": "failure", "timestamp": now_ms(), "errormessage": message}
