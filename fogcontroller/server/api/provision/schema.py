from fogcontroller.core.common import AppBaseModel


class ProvisionKey(AppBaseModel):
    key: str
    expiration_time: int


class ProvisionResult(AppBaseModel):
    id: str
    token: str


class ProvisionKeyDeleteRequest(AppBaseModel):
    provision_key: str
