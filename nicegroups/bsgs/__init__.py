from .chain import (
    ChainIntegrityError,
    ChainLevel,
    ImageGroup,
    NotInGroupError,
    PermutationImages,
    SiftResult,
    StabilizerChain,
)
from .schreier_sims import build_chain

__all__ = [
    "build_chain",
    "ChainIntegrityError",
    "ChainLevel",
    "ImageGroup",
    "NotInGroupError",
    "PermutationImages",
    "SiftResult",
    "StabilizerChain",
]
