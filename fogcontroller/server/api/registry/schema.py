from typing import Optional

from fogcontroller.core.common import AppBaseModel


class RegistryPayload(AppBaseModel):
    """Docker registry settings; all fields optional so the model serves updates too."""
    url: Optional[str] = None
    is_public: Optional[bool] = None
    secure: Optional[bool] = None
    certificate: Optional[str] = None
    requires_cert: Optional[bool] = None
    username: Optional[str] = None
    password: Optional[str] = None
    user_email: Optional[str] = None


class RegistryEntry(RegistryPayload):
    id: int
    user_id: Optional[int] = None
