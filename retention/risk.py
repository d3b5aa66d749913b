"""
retention/risk.py

Deterministic, explainable risk scoring.

Two inputs feed a fixed-weight linear formula:
  - GPA shortfall from 4.0 carries 60% of the weight
  - attendance shortfall from 100% carries 40% of the weight

The weighted sum is rounded half-up to an integer score in [0, 100], and the
tier is a step function of that score.

Inputs are clamped into their domains (GPA to [0, 4.0], attendance to
[0, 100]) before weighting. For in-domain inputs this changes nothing; for
anything else it keeps the score inside [0, 100].
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Union

import numpy as np
import pandas as pd


MAX_GPA = 4.0
GPA_WEIGHT = 0.6
ATTENDANCE_WEIGHT = 0.4

HIGH_RISK_THRESHOLD = 60
MEDIUM_RISK_THRESHOLD = 30

RISK_TIERS = ("High", "Medium", "Low")


@dataclass(frozen=True)
class RiskAssessment:
    risk_score: int
    risk_tier: str

    def to_dict(self) -> Dict[str, Union[int, str]]:
        return {"riskScore": self.risk_score, "riskTier": self.risk_tier}


def risk_tier(score: int) -> str:
    if score >= HIGH_RISK_THRESHOLD:
        return "High"
    if score >= MEDIUM_RISK_THRESHOLD:
        return "Medium"
    return "Low"


def calculate_risk(gpa: float, attendance_pct: float) -> RiskAssessment:
    """
    Score a student from cumulative GPA and attendance percentage.

    Examples
    --------
    >>> calculate_risk(2.0, 80)
    RiskAssessment(risk_score=38, risk_tier='Medium')

    Raises
    ------
    ValueError
        If either input is NaN.
    """
    if math.isnan(gpa) or math.isnan(attendance_pct):
        raise ValueError(f"Cannot score missing inputs (gpa={gpa}, attendance_pct={attendance_pct})")

    gpa = min(max(gpa, 0.0), MAX_GPA)
    attendance_pct = min(max(attendance_pct, 0.0), 100.0)

    gpa_risk = ((MAX_GPA - gpa) / MAX_GPA) * 100 * GPA_WEIGHT
    attendance_risk = ((100 - attendance_pct) / 100) * 100 * ATTENDANCE_WEIGHT

    score = int(math.floor(gpa_risk + attendance_risk + 0.5))
    return RiskAssessment(risk_score=score, risk_tier=risk_tier(score))


def score_frame(
    df: pd.DataFrame,
    gpa_col: str = "cumulative_gpa",
    attendance_col: str = "attendance_pct",
) -> pd.DataFrame:
    """
    Vectorised calculate_risk over a DataFrame.

    Returns a frame aligned to ``df.index`` with ``risk_score`` (int) and
    ``risk_tier`` (str) columns. The arithmetic runs in the same order as
    calculate_risk, so each row gets exactly the scalar function's result.
    """
    gpa = df[gpa_col].astype(float)
    attendance = df[attendance_col].astype(float)

    if gpa.isna().any() or attendance.isna().any():
        raise ValueError(f"Cannot score rows with missing '{gpa_col}' or '{attendance_col}'")

    gpa = gpa.clip(lower=0.0, upper=MAX_GPA)
    attendance = attendance.clip(lower=0.0, upper=100.0)

    gpa_risk = ((MAX_GPA - gpa) / MAX_GPA) * 100 * GPA_WEIGHT
    attendance_risk = ((100 - attendance) / 100) * 100 * ATTENDANCE_WEIGHT

    scores = np.floor(gpa_risk + attendance_risk + 0.5).astype(int)
    tiers = np.select(
        [scores >= HIGH_RISK_THRESHOLD, scores >= MEDIUM_RISK_THRESHOLD],
        ["High", "Medium"],
        default="Low",
    )

    return pd.DataFrame({"risk_score": scores, "risk_tier": tiers}, index=df.index)
