"""Lockers domain module - parcel fit checks"""

from .parcel_fit import DimensionUnit, MailboxType, Dimensions, FitResult, fits, CM_PER_INCH

__all__ = ["DimensionUnit", "MailboxType", "Dimensions", "FitResult", "fits", "CM_PER_INCH"]
