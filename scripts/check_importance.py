#!/usr/bin/env python3
"""Check feature importance of the saved final model."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from microplastics.analysis import PredictionExplainer
from microplastics.config import RESULTS_DIR
from microplastics.pipeline import load_final_model

model_path = Path(sys.argv[1]) if len(sys.argv) > 1 else RESULTS_DIR / "final_model.joblib"
bundle = load_final_model(model_path)

print(f"=== {bundle['family'].upper()} MODEL ({bundle['outcome']}) ===")
table = PredictionExplainer(bundle["model"]).get_feature_importance()
print(f"Feature importance ({table['method'].iloc[0]}):")
top = table["importance"].max() or 1.0
for feat, imp in zip(table["feature"], table["importance"]):
    bar = "█" * int(imp / top * 30)
    print(f"  {feat:28} {imp:8.4f} {bar}")
