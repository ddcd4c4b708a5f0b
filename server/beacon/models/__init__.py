from beacon.models.base import Base
from beacon.models.conversion import Conversion

__all__ = ["Base", "Conversion"]
