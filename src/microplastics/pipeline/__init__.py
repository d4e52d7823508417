"""
Pipeline Module

End-to-end modeling workflow.

Components:
    Pipeline  - Full workflow (load → prepare → split → folds → tune → diagnose → compare → finalize)
    Trainer   - Grid search over shared CV folds
    Evaluator - Family comparison and test-set evaluation
"""

from microplastics.pipeline.evaluator import EvaluationMetrics, Evaluator
from microplastics.pipeline.runner import Pipeline, load_final_model, predict_concentration
from microplastics.pipeline.trainer import Trainer, TuningResult

__all__ = [
    "Pipeline",
    "Trainer",
    "TuningResult",
    "Evaluator",
    "EvaluationMetrics",
    "load_final_model",
    "predict_concentration",
]
