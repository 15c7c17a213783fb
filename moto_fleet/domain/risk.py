"""Maintenance risk scoring - trained classifier with a deterministic fallback"""

import logging
from datetime import date
from typing import List, Optional, Protocol, Sequence, Tuple

import numpy as np
from sklearn.linear_model import LogisticRegression
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import MinMaxScaler

from moto_fleet.config import settings
from moto_fleet.domain.models import (
    Prediction,
    RiskAssessment,
    Sector,
    UrgencyTier,
    Vehicle,
    VehicleFeatures,
)
from moto_fleet.utils.date_utils import days_since

# (mileage, service_count, days_since_last_service, sector_ordinal, needs_maintenance)
BOOTSTRAP_ROWS: List[Tuple[float, float, float, float, bool]] = [
    (5000, 2, 30, 0, False),
    (15000, 1, 180, 0, True),
    (8000, 3, 60, 1, False),
    (20000, 0, 365, 2, True),
    (3000, 1, 90, 0, False),
    (12000, 2, 120, 1, True),
]

NO_CRITICAL_FACTOR = "no critical factor identified"


class Scorer(Protocol):
    """Anything that turns vehicle features into a maintenance prediction"""

    def predict(self, features: VehicleFeatures) -> Prediction:
        ...


def extract_features(
    vehicle: Vehicle,
    today: Optional[date] = None,
    never_serviced_days: Optional[int] = None,
) -> VehicleFeatures:
    """Derive scorer inputs from a vehicle; never-serviced vehicles get the sentinel day count"""
    if never_serviced_days is None:
        never_serviced_days = settings.never_serviced_days

    never_serviced = vehicle.last_service_date is None
    days = never_serviced_days if never_serviced else days_since(vehicle.last_service_date, today)

    return VehicleFeatures(
        mileage=float(vehicle.mileage),
        service_count=float(vehicle.service_count),
        days_since_last_service=float(days),
        sector_ordinal=float(vehicle.sector.ordinal),
        never_serviced=never_serviced,
    )


class LogisticRegressionScorer:
    """
    Binary classifier trained once on the bootstrap set.

    Features are min-max normalised inside the pipeline, so callers pass raw
    kilometres and day counts. Training errors propagate to the constructor.
    """

    def __init__(self, training_rows: Sequence[Tuple[float, float, float, float, bool]] = BOOTSTRAP_ROWS):
        features = np.array([row[:4] for row in training_rows], dtype=float)
        labels = np.array([int(row[4]) for row in training_rows])

        self._pipeline = Pipeline(
            [
                ("normalize", MinMaxScaler()),
                ("classifier", LogisticRegression(random_state=0)),
            ]
        )
        self._pipeline.fit(features, labels)

    def predict(self, features: VehicleFeatures) -> Prediction:
        row = np.array(
            [[
                features.mileage,
                features.service_count,
                features.days_since_last_service,
                features.sector_ordinal,
            ]],
            dtype=float,
        )
        probability = float(self._pipeline.predict_proba(row)[0][1])
        label = bool(self._pipeline.predict(row)[0])
        score = float(self._pipeline.decision_function(row)[0])

        return Prediction(needs_maintenance=label, probability=probability, score=score)


class RuleBasedScorer:
    """
    Deterministic weighted-sum scorer.

    Probability weights:
    - Mileage: >15000 +0.40, >10000 +0.30, >5000 +0.10
    - Days since service: >365 +0.35, >180 +0.25, >90 +0.15
    - Never serviced: +0.30 (on top of the days term)
    - Sector: Bad +0.25, Intermediate +0.15
    - Zero services on record: +0.10

    needs_maintenance comes from raw thresholds, not from the probability,
    so the two can disagree for moderate vehicles.
    """

    def predict(self, features: VehicleFeatures) -> Prediction:
        needs_maintenance = (
            features.mileage > 10000
            or features.days_since_last_service > 180
            or features.sector_ordinal == Sector.BAD.ordinal
        )
        probability = self.probability(features)

        return Prediction(
            needs_maintenance=needs_maintenance,
            probability=probability,
            score=1.0 if probability > 0.5 else 0.0,
        )

    @staticmethod
    def probability(features: VehicleFeatures) -> float:
        probability = 0.0

        if features.mileage > 15000:
            probability += 0.40
        elif features.mileage > 10000:
            probability += 0.30
        elif features.mileage > 5000:
            probability += 0.10

        if features.days_since_last_service > 365:
            probability += 0.35
        elif features.days_since_last_service > 180:
            probability += 0.25
        elif features.days_since_last_service > 90:
            probability += 0.15

        if features.never_serviced:
            probability += 0.30

        if features.sector_ordinal == Sector.BAD.ordinal:
            probability += 0.25
        elif features.sector_ordinal == Sector.INTERMEDIATE.ordinal:
            probability += 0.15

        if features.service_count == 0:
            probability += 0.10

        return round(min(max(probability, 0.0), 1.0), 4)


def urgency_tier(probability: float) -> UrgencyTier:
    if probability > 0.8:
        return UrgencyTier.HIGH
    elif probability > 0.6:
        return UrgencyTier.MEDIUM
    elif probability > 0.4:
        return UrgencyTier.LOW
    return UrgencyTier.NONE


def influencing_factors(features: VehicleFeatures) -> List[str]:
    """Human-readable conditions behind a classification, in fixed order"""
    factors = []

    if features.mileage > 10000:
        factors.append("high mileage")
    if features.days_since_last_service > 180:
        factors.append("long time since last service")
    if features.sector_ordinal == Sector.BAD.ordinal:
        factors.append("poor condition sector")
    if features.service_count == 0 and features.mileage > 5000:
        factors.append("never serviced despite mileage>5000")

    return factors or [NO_CRITICAL_FACTOR]


def recommendation(needs_maintenance: bool, probability: float) -> str:
    if needs_maintenance:
        if probability > 0.8:
            return "URGENT MAINTENANCE: schedule immediately"
        return "MAINTENANCE RECOMMENDED: schedule preventive service"
    if probability < 0.3:
        return "EXCELLENT CONDITION: no maintenance needed"
    return "REGULAR CONDITION: monitor periodically"


class MaintenanceRiskScorer:
    """
    Hybrid scorer used by the vehicle lifecycle.

    The model is trained once here. If training fails the process keeps
    answering from the rule-based scorer; per-call model errors fall back
    the same way, so assess() never raises because of the model.
    """

    def __init__(
        self,
        use_model: bool = True,
        model_factory=LogisticRegressionScorer,
        never_serviced_days: Optional[int] = None,
    ):
        self.fallback = RuleBasedScorer()
        self.model: Optional[Scorer] = None
        self.never_serviced_days = never_serviced_days

        if use_model:
            try:
                self.model = model_factory()
                logging.info("Maintenance risk model trained")
            except Exception as e:
                logging.error(f"Maintenance risk model training failed, using rules: {e}")
                self.model = None

    @property
    def model_available(self) -> bool:
        return self.model is not None

    def predict(self, features: VehicleFeatures) -> Tuple[Prediction, str]:
        """Return the prediction and which scorer produced it ("model" or "rules")"""
        if self.model is not None:
            try:
                return self.model.predict(features), "model"
            except Exception as e:
                logging.warning(f"Maintenance risk model failed, using rules: {e}")

        return self.fallback.predict(features), "rules"

    def assess(self, vehicle: Vehicle, today: Optional[date] = None) -> RiskAssessment:
        features = extract_features(vehicle, today, self.never_serviced_days)
        prediction, source = self.predict(features)
        probability = min(max(prediction.probability, 0.0), 1.0)

        assessment = RiskAssessment(
            plate=vehicle.plate,
            needs_maintenance=prediction.needs_maintenance,
            probability=probability,
            score=prediction.score,
            urgency_tier=urgency_tier(probability),
            recommendation=recommendation(prediction.needs_maintenance, probability),
            source=source,
            factors=influencing_factors(features),
        )

        logging.debug(
            "Risk assessed",
            extra={
                "plate": vehicle.plate,
                "source": source,
                "needs_maintenance": assessment.needs_maintenance,
                "probability": assessment.probability,
            },
        )
        return assessment
