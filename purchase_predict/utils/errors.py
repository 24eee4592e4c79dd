# purchase_predict/utils/errors.py
class PurchasePredictError(RuntimeError):
    """
    Root of every error raised by the training / inference core.
    None of them is retried; the pipeline aborts on the first one.
    """


class MalformedInputError(PurchasePredictError):
    """A raw event carries a non-numeric or non-finite numeric field."""


class EmptyDatasetError(PurchasePredictError):
    """fit / evaluate called on an empty dataset."""


class InvalidFractionError(PurchasePredictError):
    """Split test fraction outside the open interval (0, 1)."""


class InsufficientDataError(PurchasePredictError):
    """Training set empty or containing a single class."""


class TrainingStateError(PurchasePredictError):
    """A training run was used outside its lifecycle (e.g. trained twice)."""


class TrainingCancelledError(PurchasePredictError):
    """Training stopped at a cancellation checkpoint."""


class ArtifactNotFoundError(PurchasePredictError):
    """Persisted model artifact is missing or incomplete."""


class UserInputError(RuntimeError):
    """
    Raised for invalid user-provided config or CLI arguments.
    Should NOT print traceback.
    """
