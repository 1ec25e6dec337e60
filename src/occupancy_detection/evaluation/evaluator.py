# stdlib
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple
# thirdpartylib
import numpy as np
from numpy.typing import NDArray
from sklearn.model_selection import train_test_split
# projectlib
from occupancy_detection.config.constants import (
    K_VALUES,
    RANDOM_SEED,
    TRAIN_FRACTION,
)
from occupancy_detection.data.schemas import FEATURES
from occupancy_detection.errors import ClassificationError
from occupancy_detection.evaluation.metrics import (
    EvaluationResult,
    accuracy,
    confusion_matrix,
)
from occupancy_detection.models.knn import NearestNeighborClassifier
from occupancy_detection.preprocessing.dataset import Dataset, NormalizationStats
from occupancy_detection.utils.logging import Logger
from occupancy_detection.utils.typing import DegeneratePolicy, Verbosity


@dataclass(frozen=True)
class Split:
    """Row indices of the training and held-out partitions, each ascending."""
    train: NDArray[np.int64]
    test: NDArray[np.int64]

    def __post_init__(self) -> None:
        for name in ("train", "test"):
            arr = np.sort(np.asarray(getattr(self, name), dtype=np.int64))
            arr.flags.writeable = False
            object.__setattr__(self, name, arr)


class Evaluator(object):
    """
    Score the nearest-neighbour classifier on a held-out partition.

    One stratified split is drawn per dataset (seeded, so repeated runs
    give the same partition) and every candidate k is scored against
    it. Partition indices are sorted, so the training index keeps the
    dataset's ``(day, center_second)`` order, which is the order used
    to break distance ties.

    With ``normalize_before_split=True`` the dataset's global
    statistics are used (the scaling sees held-out rows). Otherwise
    statistics are refit on the training partition and applied to both
    partitions.
    """

    def __init__(
            self,
            *,
            train_fraction: float = TRAIN_FRACTION,
            random_seed: int = RANDOM_SEED,
            normalize_before_split: bool = True,
            on_degenerate: DegeneratePolicy = "drop",
            verbose: Verbosity = 0,
            logger: Optional[Logger] = None,
        ) -> None:
        self.train_fraction = train_fraction
        self.random_seed = random_seed
        self.normalize_before_split = normalize_before_split
        self.on_degenerate = on_degenerate
        self.log = (
            logger.child("evaluation") if logger is not None
            else Logger(verbose=verbose, name="evaluation")
        )

    def split(self, dataset: Dataset) -> Split:
        """
        Stratified random split on the label.

        Raises
        ------
        ClassificationError
            If the dataset is too small or a class too rare to stratify.
        """
        indices = np.arange(len(dataset))
        try:
            train, test = train_test_split(
                indices,
                train_size=self.train_fraction,
                stratify=dataset.y,
                random_state=self.random_seed,
            )
        except ValueError as e:
            msg = f"Cannot draw a stratified split of {len(dataset)} rows: {e}"
            raise ClassificationError(msg) from e
        split = Split(train=train, test=test)
        self.log(
            f"split {len(dataset)} windows into {len(split.train)} train / "
            f"{len(split.test)} test (seed {self.random_seed})",
            1,
        )
        return split

    def matrices(
            self,
            dataset: Dataset,
            split: Split,
        ) -> Tuple[NDArray[np.float64], NDArray[np.float64]]:
        """Scaled feature matrices of the training and held-out rows."""
        train_frame = dataset.frame[split.train]
        test_frame = dataset.frame[split.test]
        if self.normalize_before_split:
            stats = dataset.stats
        else:
            stats = NormalizationStats.fit(
                train_frame,
                FEATURES,
                on_degenerate=self.on_degenerate,
                logger=self.log,
            )
        return stats.matrix(train_frame), stats.matrix(test_frame)

    def evaluate(
            self,
            dataset: Dataset,
            k_values: Iterable[int] = K_VALUES,
            split: Optional[Split] = None,
        ) -> Dict[int, EvaluationResult]:
        """
        Accuracy and confusion matrix for each k on one split.

        Parameters
        ----------
        dataset : Dataset
            Labeled windows.
        k_values : iterable of int, default K_VALUES
            Neighbourhood sizes to score.
        split : Split, optional
            Partition to reuse; drawn with ``split`` when omitted.

        Raises
        ------
        ClassificationError
            If no k can be scored. A k that is not positive or not
            smaller than the training partition is skipped with a
            warning and the remaining k values are still scored.
        """
        split = self.split(dataset) if split is None else split
        X_train, X_test = self.matrices(dataset, split)
        y = dataset.y
        y_train, y_test = y[split.train], y[split.test]
        results: Dict[int, EvaluationResult] = {}
        rejected: List[str] = []
        for k in k_values:
            try:
                model = NearestNeighborClassifier(k).fit(X_train, y_train)
            except ClassificationError as e:
                self.log.warning(f"skipping k={k!r}: {e}")
                rejected.append(str(e))
                continue
            y_pred = model.predict(X_test)
            result = EvaluationResult(
                k=k,
                confusion=confusion_matrix(y_test, y_pred),
                accuracy=accuracy(y_test, y_pred),
                n_train=len(split.train),
                n_test=len(split.test),
            )
            self.log(f"k={k}: accuracy {result.accuracy:.4f}", 1)
            self.log(result.summary(), 2)
            results[k] = result
        if not results:
            msg = f"No k value could be scored: {'; '.join(rejected)}"
            raise ClassificationError(msg)
        return results
