# -------------------------------------------------------------------
# schemas/analysis_schema.py
#
# WHAT THIS FILE IS FOR
# --------------------
# Typed shapes around meal-analysis records.
#
# Analysis records themselves stay plain dicts: they are produced by
# external analyzers (vision / OCR pipelines) and must pass through
# normalization unchanged wherever a field is present. Only the pieces
# this service *creates* are modeled here:
#
# - ModelInfo: the default modelInfo block substituted when absent
# - AnalysisValidationResponse / AnalysisResolutionResponse:
#   HTTP response bodies for the analysis endpoints
#
# These models use snake_case attributes with camelCase aliases
# (populate_by_name=True), so callers dump them with by_alias=True.
# Analysis records keep their original camelCase keys.
# -------------------------------------------------------------------

from __future__ import annotations

from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field


class ModelInfo(BaseModel):
    """Which model produced an analysis, and how."""

    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    model: str = "unknown"
    used_fallback: bool = Field(False, alias="usedFallback")
    ocr_extracted: bool = Field(False, alias="ocrExtracted")


class AnalysisValidationResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    is_valid: bool = Field(..., alias="isValid")
    normalized: Dict[str, Any]


class AnalysisResolutionResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    used_fallback: bool = Field(..., alias="usedFallback")
    analysis: Dict[str, Any]
