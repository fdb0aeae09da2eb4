from .errors import (
    InvalidKError,
    LabelCountMismatchError,
    MissingValueError,
    NearestNeighborError,
    NotFittedError,
    SchemaMismatchError,
)
from .knn import KNNClassifier, KNNRegressor, Mode, NearestNeighborEstimator, predict

__version__ = "0.1.0"
