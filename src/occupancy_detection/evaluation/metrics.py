# stdlib
from dataclasses import dataclass
# thirdpartylib
import numpy as np
from numpy.typing import NDArray
from sklearn.metrics import confusion_matrix as sk_confusion_matrix
# projectlib
from occupancy_detection.utils.typing import ArrayLike1D

# Label order of confusion matrices: absence, presence
LABELS = (0, 1)

def confusion_matrix(
        y_true: ArrayLike1D,
        y_pred: ArrayLike1D,
    ) -> NDArray[np.int64]:
    """
    2x2 confusion matrix with predicted labels on rows.

    ``out[i, j]`` counts windows predicted as ``LABELS[i]`` whose actual
    label is ``LABELS[j]``. This is the transpose of
    :func:`sklearn.metrics.confusion_matrix`, which puts actual labels
    on rows.
    """
    return sk_confusion_matrix(
        np.asarray(y_true), np.asarray(y_pred), labels=list(LABELS)
    ).T.astype(np.int64)

def accuracy(y_true: ArrayLike1D, y_pred: ArrayLike1D) -> float:
    """
    Fraction of correct predictions.

    Returns ``NaN`` for empty input rather than coercing to a number.
    """
    y_true = np.asarray(y_true)
    y_pred = np.asarray(y_pred)
    if y_true.size == 0:
        return float("nan")
    return float(np.mean(y_true == y_pred))


@dataclass(frozen=True)
class EvaluationResult:
    """Scores of one k against the held-out partition."""
    k: int
    confusion: NDArray[np.int64]
    accuracy: float
    n_train: int
    n_test: int

    def summary(self) -> str:
        """Formatted accuracy and confusion matrix."""
        c = self.confusion
        return "\n".join([
            f"k = {self.k}  accuracy = {self.accuracy:.4f} "
            f"(train {self.n_train}, test {self.n_test})",
            "               actual 0  actual 1",
            f"  predicted 0  {c[0, 0]:>8d}  {c[0, 1]:>8d}",
            f"  predicted 1  {c[1, 0]:>8d}  {c[1, 1]:>8d}",
        ])
