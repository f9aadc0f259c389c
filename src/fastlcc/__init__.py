"""
Fast Local Correlation Coefficients

Correlation coefficients with local normalization between a haystack tensor and a needle
tensor of the same rank, for any rank and real or complex values.
"""
from fastlcc.errors import EmptyInput, LccInputError, ScalarTypeMismatch, ShapeMismatch
from fastlcc.options import LccOptions, default_options
from fastlcc.box_sums import window_sums
from fastlcc.normalization import correlate
from fastlcc.lcc import lcc
from fastlcc.flcc import flcc
from fastlcc.precompute import FlccPrecomputed, flcc_complete, flcc_prepare
from fastlcc.matching import best_match, best_matches


__all__ = [
    "lcc", "flcc", "flcc_prepare", "flcc_complete", "FlccPrecomputed",
    "window_sums", "correlate", "best_match", "best_matches",
    "LccOptions", "default_options",
    "LccInputError", "ShapeMismatch", "EmptyInput", "ScalarTypeMismatch",
]
