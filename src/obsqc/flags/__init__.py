"""Flag storage for the QC core."""

from obsqc.flags.matrix import FLAG_DTYPE, FlagMatrix

__all__ = ["FLAG_DTYPE", "FlagMatrix"]
