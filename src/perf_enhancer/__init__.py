# src/perf_enhancer/__init__.py
from perf_enhancer.controllers.enhance_controller import EnhanceController
from perf_enhancer.model import EnhanceResult, EnhancerData, EnhancerSettings, HostFeatures, PatternSets

__version__ = "0.13.0"

__all__ = [
    "EnhanceController",
    "EnhanceResult",
    "EnhancerData",
    "EnhancerSettings",
    "HostFeatures",
    "PatternSets",
]
