"""Remote service clients."""

from .Db import Db
from .IdentityToolkit import IdentityToolkit
from .ImageUploader import ImageUploader

__all__ = ["Db", "IdentityToolkit", "ImageUploader"]
