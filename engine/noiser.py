"""
Noiser Engine.

Stateful facade over aggregation, calibration and noise application. It
owns the current field, mechanism, accuracy level and alpha, and the last
computed (true, noised) count pair.

STATE:
- field: column being aggregated
- mechanism: Laplace or Gaussian
- accuracy index: bounded integer in [0, max_accuracy_index], wrapping
  around in both directions; accuracy = min_accuracy + index
- alpha: tolerated probability that a noise draw exceeds the accuracy
- snapshot: the last successful (true, noised) pair with the parameters
  that produced it

Every transition changes state and then recomputes both vectors from the
raw dataset. A refresh that fails at any stage leaves the previous
snapshot in place and is reported through ``last_refresh``; it never
publishes a partial or mismatched pair.
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from core.calibration import NoiseCalibrator
from core.config import Config
from core.errors import DataError, NoiserError
from core.mechanisms import Mechanism, NoiseApplier, noise_variance
from reader.aggregator import CountAggregator
from schema.dataset import CsvDataset


logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class NoiseSnapshot:
    """
    A consistent (true, noised) count pair and the parameters behind it.

    Snapshots compare by identity: a refresh always publishes a new object.
    """
    field_name: str
    buckets: Tuple[str, ...]
    mechanism: Mechanism
    accuracy: int
    alpha: float
    scale: float
    true_counts: np.ndarray
    noised_counts: np.ndarray

    @property
    def error_bound(self) -> int:
        """Integer accuracy actually guaranteed by ``scale`` at ``alpha``."""
        return NoiseCalibrator().scale_to_accuracy(self.mechanism, self.scale, self.alpha)

    @property
    def noise_variance(self) -> float:
        """Variance of one noise draw."""
        return noise_variance(self.mechanism, self.scale)

    def to_dataframe(self) -> pd.DataFrame:
        """Tabulate buckets with their true and noised counts."""
        return pd.DataFrame({
            "bucket": list(self.buckets),
            "true_count": self.true_counts,
            "noised_count": self.noised_counts,
            "difference": self.noised_counts - self.true_counts,
        })

    def summary(self) -> str:
        """Generate a text summary of the snapshot."""
        lines = [
            "=" * 60,
            f"Field: {self.field_name}",
            f"Mechanism: {self.mechanism.label}",
            f"Accuracy: {self.accuracy} (alpha={self.alpha})",
            f"Scale: {self.scale:.4f}",
            "=" * 60,
            self.to_dataframe().to_string(index=False),
            "=" * 60,
        ]
        return "\n".join(lines)


@dataclass
class RefreshResult:
    """Outcome of one refresh."""
    success: bool
    field_name: str
    mechanism: Mechanism
    accuracy: int
    alpha: float
    stage: Optional[str] = None  # 'aggregate', 'calibrate' or 'noise' on failure
    error: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "success": self.success,
            "field": self.field_name,
            "mechanism": self.mechanism.value,
            "accuracy": self.accuracy,
            "alpha": self.alpha,
            "stage": self.stage,
            "error": self.error,
            "timestamp": self.timestamp.isoformat(),
        }


class Noiser:
    """
    Interactive noising engine over one dataset.

    The dataset is only read. Transitions are serialised by an internal
    lock, and the cached pair is swapped as a single snapshot reference so
    readers never see true counts from one parameter set next to noised
    counts from another.
    """

    def __init__(
        self,
        dataset: CsvDataset,
        field_name: str,
        alpha: float = 0.05,
        mechanism: Mechanism = Mechanism.LAPLACE,
        min_accuracy: int = 1,
        max_accuracy_index: int = 100,
        switch_fields: Optional[List[str]] = None,
        aggregator: Optional[CountAggregator] = None,
        calibrator: Optional[NoiseCalibrator] = None,
        applier: Optional[NoiseApplier] = None
    ):
        """
        Initialize the engine and run the first refresh.

        Args:
            dataset: Dataset to aggregate (never modified)
            field_name: Initial field to aggregate
            alpha: Tolerated probability of exceeding the accuracy target
            mechanism: Initial noise mechanism
            min_accuracy: Accuracy at index 0 (>= 1)
            max_accuracy_index: Largest accuracy index
            switch_fields: Field order used by cycle_field()
            aggregator: Count aggregator (default CountAggregator)
            calibrator: Scale calibrator (default NoiseCalibrator)
            applier: Noise applier (default exact-sampling NoiseApplier)
        """
        if min_accuracy < 1:
            raise ValueError(f"min_accuracy must be >= 1, got {min_accuracy}")
        if max_accuracy_index < 0:
            raise ValueError(f"max_accuracy_index must be >= 0, got {max_accuracy_index}")
        if not dataset.schema.has_column(field_name):
            raise DataError(f"Unknown field '{field_name}'")

        self.dataset = dataset
        self.aggregator = aggregator or CountAggregator()
        self.calibrator = calibrator or NoiseCalibrator()
        self.applier = applier or NoiseApplier()

        self.min_accuracy = min_accuracy
        self.max_accuracy_index = max_accuracy_index
        self.switch_fields = list(switch_fields or ["educ", "income"])

        self._field = field_name
        self._mechanism = mechanism
        self._accuracy_index = 0
        self._alpha = alpha

        self._snapshot: Optional[NoiseSnapshot] = None
        self._last_refresh: Optional[RefreshResult] = None
        self._lock = threading.RLock()

        logger.info(
            f"Noiser initialized: field={field_name}, mechanism={mechanism.label}, "
            f"alpha={alpha}, accuracy levels={min_accuracy}..{min_accuracy + max_accuracy_index}"
        )
        self.refresh()

    @classmethod
    def from_config(cls, dataset: CsvDataset, config: Config, **kwargs) -> "Noiser":
        """Create an engine from a Config."""
        return cls(
            dataset,
            config.data.default_field,
            alpha=config.noise.alpha,
            mechanism=Mechanism.from_name(config.noise.mechanism),
            min_accuracy=config.noise.min_accuracy,
            max_accuracy_index=config.noise.max_accuracy_index,
            switch_fields=config.data.switch_fields,
            applier=NoiseApplier(
                use_fast_sampling=config.noise.use_fast_sampling,
                fast_sampling_threshold=config.noise.fast_sampling_threshold
            ),
            **kwargs
        )

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def field(self) -> str:
        return self._field

    @property
    def mechanism(self) -> Mechanism:
        return self._mechanism

    @property
    def accuracy_index(self) -> int:
        return self._accuracy_index

    @property
    def accuracy(self) -> int:
        """Accuracy target for the current index."""
        return self.min_accuracy + self._accuracy_index

    @property
    def alpha(self) -> float:
        return self._alpha

    @property
    def buckets(self) -> List[str]:
        """
        Bucket labels aligned with ``true_counts`` and ``noised_counts``.

        These come from the published snapshot, so after a failed refresh
        they still label the last good pair rather than the current field.
        """
        snapshot = self._snapshot
        if snapshot is not None:
            return list(snapshot.buckets)
        return self.dataset.buckets_for(self._field)

    @property
    def snapshot(self) -> Optional[NoiseSnapshot]:
        """Last successfully computed pair, or None if no refresh has succeeded."""
        return self._snapshot

    @property
    def true_counts(self) -> Optional[np.ndarray]:
        snapshot = self._snapshot
        return snapshot.true_counts if snapshot is not None else None

    @property
    def noised_counts(self) -> Optional[np.ndarray]:
        snapshot = self._snapshot
        return snapshot.noised_counts if snapshot is not None else None

    @property
    def last_refresh(self) -> Optional[RefreshResult]:
        return self._last_refresh

    @property
    def refresh_failed(self) -> bool:
        """True if the latest refresh did not produce a new pair."""
        return self._last_refresh is not None and not self._last_refresh.success

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def refresh(self) -> RefreshResult:
        """
        Recompute the true and noised counts for the current state.

        Returns:
            RefreshResult; on failure the previous snapshot is kept
        """
        with self._lock:
            field_name = self._field
            mechanism = self._mechanism
            accuracy = self.accuracy
            alpha = self._alpha

            result = RefreshResult(
                success=False,
                field_name=field_name,
                mechanism=mechanism,
                accuracy=accuracy,
                alpha=alpha
            )

            stage = "aggregate"
            try:
                true_counts = self.aggregator.aggregate(self.dataset, field_name)

                stage = "calibrate"
                scale = self.calibrator.calibrate_scale(mechanism, accuracy, alpha)

                stage = "noise"
                noised_counts = self.applier.apply_noise(true_counts, mechanism, scale)
            except NoiserError as e:
                result.stage = stage
                result.error = str(e)
                self._last_refresh = result
                logger.error(f"Refresh failed at {stage} stage ({field_name}, {mechanism.label}, "
                             f"accuracy={accuracy}, alpha={alpha}): {e}")
                return result

            noised_counts = np.asarray(noised_counts, dtype=np.int64)
            noised_counts.setflags(write=False)

            self._snapshot = NoiseSnapshot(
                field_name=field_name,
                buckets=tuple(self.dataset.buckets_for(field_name)),
                mechanism=mechanism,
                accuracy=accuracy,
                alpha=alpha,
                scale=scale,
                true_counts=true_counts,
                noised_counts=noised_counts
            )
            result.success = True
            self._last_refresh = result

            logger.info(f"Refreshed {field_name}: {mechanism.label} noise, accuracy={accuracy}, "
                        f"alpha={alpha}, scale={scale:.4f}")
            return result

    def toggle_mechanism(self) -> RefreshResult:
        """Flip Laplace <-> Gaussian and refresh."""
        with self._lock:
            self._mechanism = self._mechanism.toggled()
            logger.info(f"Mechanism -> {self._mechanism.label}")
            return self.refresh()

    def increase_accuracy(self) -> RefreshResult:
        """Advance the accuracy index, wrapping to 0 past the maximum, and refresh."""
        with self._lock:
            if self._accuracy_index >= self.max_accuracy_index:
                self._accuracy_index = 0
            else:
                self._accuracy_index += 1
            logger.info(f"Accuracy index -> {self._accuracy_index} (accuracy={self.accuracy})")
            return self.refresh()

    def decrease_accuracy(self) -> RefreshResult:
        """Retreat the accuracy index, wrapping to the maximum below 0, and refresh."""
        with self._lock:
            if self._accuracy_index <= 0:
                self._accuracy_index = self.max_accuracy_index
            else:
                self._accuracy_index -= 1
            logger.info(f"Accuracy index -> {self._accuracy_index} (accuracy={self.accuracy})")
            return self.refresh()

    def switch_field(self, new_field: str) -> RefreshResult:
        """
        Aggregate a different field, resetting the accuracy index to 0.

        Raises:
            DataError: If ``new_field`` is not a schema column (state unchanged)
        """
        with self._lock:
            if not self.dataset.schema.has_column(new_field):
                raise DataError(f"Unknown field '{new_field}', expected one of: "
                                f"{', '.join(self.dataset.columns())}")
            self._field = new_field
            self._accuracy_index = 0
            logger.info(f"Field -> {new_field}")
            return self.refresh()

    def cycle_field(self) -> RefreshResult:
        """Switch to the next field of ``switch_fields``."""
        with self._lock:
            if self._field in self.switch_fields:
                position = self.switch_fields.index(self._field)
                next_field = self.switch_fields[(position + 1) % len(self.switch_fields)]
            else:
                next_field = self.switch_fields[0]
            return self.switch_field(next_field)

    def __repr__(self) -> str:
        return (f"Noiser(field={self._field}, mechanism={self._mechanism.label}, "
                f"accuracy_index={self._accuracy_index}, alpha={self._alpha})")
