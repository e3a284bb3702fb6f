from fogcontroller.core.common import AppBaseModel, transform

__all__ = ["AppBaseModel", "transform"]
