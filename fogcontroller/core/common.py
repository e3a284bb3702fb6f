import json
import secrets
import string
import time
from typing import Any, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from fogcontroller.core.errors import ValidationError as FogValidationError
from fogcontroller.core.logger import setup_logger

logger = setup_logger(__name__, include_location=True)


# =============================================================================
# Pydantic Common Models and Utilities
# =============================================================================

class AppBaseModel(BaseModel):
    """
    Base Pydantic model with common configuration.

    - ORM mode support (from_attributes=True), rows from dict_row cursors
      and attribute objects validate the same way
    - camelCase aliases on the wire, snake_case attributes in Python
    """
    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_payload(self) -> dict[str, Any]:
        """Wire representation: camelCase keys, unset/None values dropped."""
        return delete_undefined_fields(self.model_dump(by_alias=True, exclude_none=True, mode="json"))


T = TypeVar("T", bound=BaseModel)


def transform(class_constructor: Type[T], arg: dict) -> T:
    """
    Transform a dict into a Pydantic model instance, logging validation errors.

    Raises:
        ValidationError: If the data does not conform to the model.
    """
    try:
        return class_constructor(**arg)
    except ValidationError as e:
        logger.error(
            f"{class_constructor.__name__} Validation error: "
            f"{json.dumps(e.errors(include_input=False, include_url=False))}"
        )
        raise


# =============================================================================
# Payload helpers
# =============================================================================

def delete_undefined_fields(obj: Any) -> Any:
    """Recursively drop keys whose value is None from dicts (and dicts inside lists)."""
    if isinstance(obj, dict):
        return {key: delete_undefined_fields(value) for key, value in obj.items() if value is not None}
    if isinstance(obj, list):
        return [delete_undefined_fields(item) for item in obj]
    return obj


def validate_boolean_cli_options(true_option: Optional[bool], false_option: Optional[bool]) -> Optional[bool]:
    """
    Collapse a pair of opposite boolean flags (e.g. --public/--private) into one value.

    Returns True when the first flag is set, False when only the second one is,
    None when neither is. Setting both is a validation error.
    """
    if true_option and false_option:
        raise FogValidationError("Two opposite can't be used simultaneously")
    if true_option:
        return True
    if false_option:
        return False
    return None


# =============================================================================
# Identifiers and time
# =============================================================================

def now_ms() -> int:
    """Current time as epoch milliseconds (the unit of change tracking and key expiry)."""
    return int(time.time() * 1000)


def generate_random_string(length: int, alphabet: str = string.ascii_letters + string.digits) -> str:
    return "".join(secrets.choice(alphabet) for _ in range(length))


def generate_access_token() -> str:
    return secrets.token_hex(32)
