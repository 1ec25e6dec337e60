# stdlib
from typing import Optional, Tuple
# thirdpartylib
import numpy as np
from numpy.typing import NDArray
# projectlib
from occupancy_detection.config.constants import QUERY_CHUNK_SIZE, VOTE_TIE_LABEL
from occupancy_detection.errors import ClassificationError


class NearestNeighborClassifier(object):
    """
    Instance-based binary classifier using k nearest neighbours.

    ``fit`` stores a read-only copy of the training matrix; all work
    happens at prediction time. Neighbours are ranked by Euclidean
    distance with a stable sort, so candidates at equal distance are
    taken in training order (lower index first). The label is the
    majority vote of the k neighbours; an evenly split vote returns
    ``tie_label`` (absence by default).

    Parameters
    ----------
    k : int
        Number of neighbours. Must be positive and smaller than the
        training set.
    tie_label : int, default VOTE_TIE_LABEL
        Label returned when the vote is split evenly.
    chunk_size : int, default QUERY_CHUNK_SIZE
        Number of queries scored per distance block. Only bounds memory;
        predictions do not depend on it.

    Raises
    ------
    ClassificationError
        If ``k`` is not a positive integer.
    """

    def __init__(
            self,
            k: int,
            *,
            tie_label: int = VOTE_TIE_LABEL,
            chunk_size: int = QUERY_CHUNK_SIZE,
        ) -> None:
        if isinstance(k, bool) or not isinstance(k, (int, np.integer)) or k <= 0:
            raise ClassificationError(f"k must be a positive integer, got {k!r}.")
        self.k = int(k)
        self.tie_label = tie_label
        self.chunk_size = max(1, chunk_size)
        self._X: Optional[NDArray[np.float64]] = None
        self._y: Optional[NDArray[np.int64]] = None

    @property
    def is_fitted(self) -> bool:
        return self._X is not None

    def fit(
            self,
            X: NDArray[np.float64],
            y: NDArray[np.int64],
        ) -> "NearestNeighborClassifier":
        """
        Store the training set as the neighbour index.

        Raises
        ------
        ClassificationError
            If ``k >= len(X)`` or the shapes of ``X`` and ``y`` disagree.
        """
        X = np.array(X, dtype=np.float64)
        y = np.array(y, dtype=np.int64)
        if X.ndim != 2 or y.ndim != 1 or len(X) != len(y):
            msg = (
                f"Expected X of shape (n, d) and y of shape (n,), got "
                f"{X.shape} and {y.shape}."
            )
            raise ClassificationError(msg)
        if self.k >= len(X):
            msg = (
                f"k={self.k} must be smaller than the training set size "
                f"({len(X)})."
            )
            raise ClassificationError(msg)
        X.flags.writeable = False
        y.flags.writeable = False
        self._X, self._y = X, y
        return self

    def kneighbors(
            self,
            X: NDArray[np.float64],
        ) -> Tuple[NDArray[np.float64], NDArray[np.int64]]:
        """
        Distances and training indices of the k nearest neighbours.

        Returns
        -------
        distances : ndarray of shape (n_queries, k)
        indices : ndarray of shape (n_queries, k)
            Ordered by increasing distance, ties by training index.
        """
        train, _ = self._require_fitted()
        queries = np.atleast_2d(np.asarray(X, dtype=np.float64))
        if queries.shape[1] != train.shape[1]:
            msg = (
                f"Queries have {queries.shape[1]} features, the index has "
                f"{train.shape[1]}."
            )
            raise ClassificationError(msg)
        distances = np.empty((len(queries), self.k))
        indices = np.empty((len(queries), self.k), dtype=np.int64)
        for lo in range(0, len(queries), self.chunk_size):
            block = queries[lo:lo + self.chunk_size]
            sq = ((block[:, None, :] - train[None, :, :]) ** 2).sum(axis=2)
            order = np.argsort(sq, axis=1, kind="stable")[:, :self.k]
            indices[lo:lo + len(block)] = order
            distances[lo:lo + len(block)] = np.sqrt(
                np.take_along_axis(sq, order, axis=1)
            )
        return distances, indices

    def predict(self, X: NDArray[np.float64]) -> NDArray[np.int64]:
        """Majority label of the k nearest training rows of each query."""
        _, labels = self._require_fitted()
        _, indices = self.kneighbors(X)
        votes = labels[indices].sum(axis=1)
        others = self.k - votes
        return np.where(
            votes > others, 1, np.where(votes < others, 0, self.tie_label)
        ).astype(np.int64)

    def _require_fitted(
            self,
        ) -> Tuple[NDArray[np.float64], NDArray[np.int64]]:
        if self._X is None or self._y is None:
            raise ClassificationError("Classifier has not been fit.")
        return self._X, self._y
