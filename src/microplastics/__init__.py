"""
Microplastics - Predicting particle concentration in water samples

Can microplastic concentration be predicted from auxiliary variables
(wastewater facility distance, land use, population, turbidity, E. coli,
visual score)? Five model families are tuned by repeated k-fold CV and
compared against a mean-only baseline.

Structure:
    config     - Paths, seeds, CV settings
    data/      - Cached datasets, geocoding, FGDC metadata
    features/  - Column definitions and table joins
    models/    - Splits, model families, null baseline
    pipeline/  - Tuning, comparison, final fit
    analysis/  - Metrics, importance, diagnostic plots

Usage:
    from microplastics.pipeline import Pipeline
    from microplastics.data import DataReader
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
