"""
functions/analysis/analysis_validator.py

WHAT THIS FILE IS FOR
---------------------
Validation and normalization of meal-analysis records produced by the
external analyzers.

VALIDITY RULE
-------------
is_valid_analysis() is a minimal structural check:
- `description` is present and a str
- `nutrients` is present, a list, and non-empty

Nothing else is inspected. Nutrient entries are not validated internally,
and optional fields never make a record invalid.

NORMALIZATION RULE
------------------
normalize_analysis_result() is total over any input and never raises:
- `description`, `nutrients`  -> copied as-is (None when absent)
- `feedback`, `suggestions`   -> [] when absent, else copied unchanged
- `modelInfo`                 -> DEFAULT_MODEL_INFO when absent,
                                 else copied unchanged (no field merge)

"Absent" means missing or null. Normalization does not consult validity;
callers that need a trustworthy description/nutrients must validate first
(or use resolve_analysis(), which does both).

Normalizing an already normalized record returns an equal record.

FALLBACK
--------
create_fallback_analysis() builds the placeholder record stored when an
analyzer returns something unusable. It carries a single zero-calorie
nutrient so the stored record still passes is_valid_analysis().
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Tuple

import structlog

from schemas.analysis_schema import ModelInfo

logger = structlog.get_logger(__name__)

_MISSING = object()

DEFAULT_MODEL_INFO: Dict[str, Any] = ModelInfo().model_dump(by_alias=True)


def _field(candidate: Any, name: str) -> Any:
    """Return the field value, or _MISSING when absent (missing key or null)."""
    if not isinstance(candidate, Mapping):
        return _MISSING
    value = candidate.get(name, _MISSING)
    return _MISSING if value is None else value


def is_valid_analysis(candidate: Any) -> bool:
    description = _field(candidate, "description")
    if not isinstance(description, str):
        logger.warning("analysis_invalid", rule="description_missing_or_not_string")
        return False

    nutrients = _field(candidate, "nutrients")
    if not isinstance(nutrients, list):
        logger.warning("analysis_invalid", rule="nutrients_missing_or_not_list")
        return False

    if len(nutrients) < 1:
        logger.warning("analysis_invalid", rule="nutrients_empty")
        return False

    return True


def normalize_analysis_result(candidate: Any) -> Dict[str, Any]:
    description = _field(candidate, "description")
    nutrients = _field(candidate, "nutrients")
    feedback = _field(candidate, "feedback")
    suggestions = _field(candidate, "suggestions")
    model_info = _field(candidate, "modelInfo")

    return {
        "description": None if description is _MISSING else description,
        "nutrients": None if nutrients is _MISSING else nutrients,
        "feedback": [] if feedback is _MISSING else feedback,
        "suggestions": [] if suggestions is _MISSING else suggestions,
        "modelInfo": dict(DEFAULT_MODEL_INFO) if model_info is _MISSING else model_info,
    }


def create_fallback_analysis() -> Dict[str, Any]:
    return {
        "description": "Unable to analyze this meal properly",
        "nutrients": [{"name": "Calories", "value": 0, "unit": "kcal", "isHighlight": True}],
        "feedback": ["We couldn't properly analyze this meal. Please try again with a clearer photo."],
        "suggestions": ["Take a photo with better lighting", "Make sure all food items are visible"],
        "fallback": True,
        "detailedIngredients": [],
        "goalScore": 5,
        "goalName": "Not Available",
    }


def resolve_analysis(candidate: Any) -> Tuple[Dict[str, Any], bool]:
    """
    Guard used before storing an analysis.

    Returns:
        (record, used_fallback) where record is the normalized candidate when
        it is valid, otherwise the normalized fallback record.
    """
    if is_valid_analysis(candidate):
        return normalize_analysis_result(candidate), False

    logger.info("analysis_replaced_with_fallback")
    fallback = create_fallback_analysis()
    # keep the fallback-only fields alongside the normalized core
    return {**fallback, **normalize_analysis_result(fallback)}, True
