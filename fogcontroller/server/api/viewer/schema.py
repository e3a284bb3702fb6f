from typing import Optional

from fogcontroller.core.common import AppBaseModel


class StreamViewerAccess(AppBaseModel):
    api_base_url: str
    access_token: str
    element_id: Optional[str] = None
