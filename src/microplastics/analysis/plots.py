"""Diagnostic plots saved as PNG.

- plot_predictions: predicted vs observed concentration, with identity line
- plot_residuals: residual vs predicted, with zero line
- plot_importance: horizontal bar chart of the top features
- plot_comparison: CV RMSE per family against the null baseline
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns

sns.set_theme(style="whitegrid")

DPI = 200


def _save(fig, path: Union[str, Path]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.tight_layout()
    fig.savefig(path, dpi=DPI, bbox_inches="tight")
    plt.close(fig)
    return path


def plot_predictions(y_true, y_pred, path: Union[str, Path], title: str = "Predicted vs observed") -> Path:
    """Scatter of prediction against outcome."""
    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.asarray(y_pred, dtype=float)

    fig, ax = plt.subplots(figsize=(6, 6))
    ax.scatter(y_true, y_pred, alpha=0.6, s=20, edgecolor="none")
    lo = float(min(y_true.min(), y_pred.min()))
    hi = float(max(y_true.max(), y_pred.max()))
    ax.plot([lo, hi], [lo, hi], "k--", linewidth=1.2)
    ax.set_xlabel("Observed concentration")
    ax.set_ylabel("Predicted concentration")
    ax.set_title(title, fontweight="bold")
    return _save(fig, path)


def plot_residuals(y_pred, resid, path: Union[str, Path], title: str = "Residuals vs predicted") -> Path:
    """Scatter of residual against prediction."""
    y_pred = np.asarray(y_pred, dtype=float)
    resid = np.asarray(resid, dtype=float)

    fig, ax = plt.subplots(figsize=(7, 5))
    ax.scatter(y_pred, resid, alpha=0.6, s=20, edgecolor="none")
    ax.axhline(0, color="red", linestyle="--", linewidth=1.2)
    ax.set_xlabel("Predicted concentration")
    ax.set_ylabel("Residual")
    ax.set_title(f"{title}\nmean={resid.mean():.2f}, sd={resid.std():.2f}", fontweight="bold")
    return _save(fig, path)


def plot_importance(importance: pd.DataFrame, path: Union[str, Path], n: int = 15,
                    title: str = "Feature importance") -> Path:
    """Horizontal bars for the top `n` rows of an importance table."""
    top = importance.head(n).iloc[::-1]
    fig, ax = plt.subplots(figsize=(7, max(3, 0.35 * len(top) + 1)))
    ax.barh(top["feature"], top["importance"], color=sns.color_palette()[0])
    ax.set_xlabel(f"Importance ({importance['method'].iloc[0]})" if len(importance) else "Importance")
    ax.set_title(title, fontweight="bold")
    return _save(fig, path)


def plot_comparison(comparison: pd.DataFrame, path: Union[str, Path],
                    null_rmse: Optional[float] = None) -> Path:
    """CV RMSE (± one std) per family."""
    fig, ax = plt.subplots(figsize=(7, 4))
    ax.bar(comparison["family"], comparison["cv_rmse"],
           yerr=comparison.get("cv_rmse_std"), capsize=4, color=sns.color_palette()[1])
    if null_rmse is not None:
        ax.axhline(null_rmse, color="black", linestyle="--", linewidth=1.2, label="Null model")
        ax.legend()
    ax.set_ylabel("Cross-validated RMSE")
    ax.set_title("Model comparison", fontweight="bold")
    return _save(fig, path)
