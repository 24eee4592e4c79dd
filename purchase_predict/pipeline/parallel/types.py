# purchase_predict/pipeline/parallel/types.py
from enum import Enum


class ParallelKind(str, Enum):
    FEATURE = "feature"
