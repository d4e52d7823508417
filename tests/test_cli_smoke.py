"""CLI smoke tests for scripts.

These verify the scripts start, parse arguments, and exit cleanly.
Correctness is covered by the module tests.
"""

import subprocess
import sys
from pathlib import Path

import pandas as pd

PROJECT_ROOT = Path(__file__).parent.parent
SCRIPTS_DIR = PROJECT_ROOT / "scripts"

FGDC_XML = """<metadata><idinfo>
  <citation><citeinfo><origin>USGS</origin><title>Hydrography</title></citeinfo></citation>
  <spdom><bounding>
    <westbc>-83.0</westbc><eastbc>-81.5</eastbc><northbc>29.0</northbc><southbc>27.0</southbc>
  </bounding></spdom>
</idinfo></metadata>"""


def run_script(script_path: Path, args: list = None) -> subprocess.CompletedProcess:
    """Run a script with PYTHONPATH set to src."""
    cmd = [sys.executable, str(script_path)]
    if args:
        cmd.extend(args)

    return subprocess.run(
        cmd,
        capture_output=True,
        text=True,
        env={**subprocess.os.environ, "PYTHONPATH": str(PROJECT_ROOT / "src")},
        cwd=str(PROJECT_ROOT),
        timeout=120,
    )


class TestCLIHelpOutput:

    def test_train_and_eval_has_help(self):
        result = run_script(SCRIPTS_DIR / "train_and_eval.py", ["--help"])
        assert result.returncode == 0
        assert "--families" in result.stdout

    def test_geocode_sites_has_help(self):
        result = run_script(SCRIPTS_DIR / "geocode_sites.py", ["--help"])
        assert result.returncode == 0
        assert "usage" in result.stdout.lower()


class TestDescribeMetadata:

    def test_prints_summary(self, tmp_path):
        path = tmp_path / "hydro.xml"
        path.write_text(FGDC_XML)

        result = run_script(SCRIPTS_DIR / "describe_metadata.py", [str(path)])
        assert result.returncode == 0, result.stderr
        assert "Hydrography" in result.stdout
        assert "W -83.0" in result.stdout


class TestTrainAndEval:

    def test_full_run(self, samples, tmp_path):
        data_dir = tmp_path / "data"
        data_dir.mkdir()
        samples.to_csv(data_dir / "samples_model.csv", index=False)

        result = run_script(SCRIPTS_DIR / "train_and_eval.py", [
            "--data-dir", str(data_dir),
            "--results-dir", str(tmp_path / "results"),
            "--families", "linear", "lasso",
            "--folds", "3",
            "--repeats", "1",
        ])
        assert result.returncode == 0, result.stderr
        assert (tmp_path / "results" / "final_model.joblib").exists()

    def test_zip_population_workbook(self, samples, tmp_path):
        data_dir = tmp_path / "data"
        data_dir.mkdir()
        samples.assign(zip=33602).to_csv(data_dir / "samples_model.csv", index=False)
        pd.DataFrame({"zip": ["33602"], "population": [5000]}).to_excel(
            tmp_path / "zip_population.xlsx", index=False,
        )

        result = run_script(SCRIPTS_DIR / "train_and_eval.py", [
            "--data-dir", str(data_dir),
            "--results-dir", str(tmp_path / "results"),
            "--zip-population", str(tmp_path / "zip_population.xlsx"),
            "--families", "linear",
            "--folds", "3",
            "--repeats", "1",
        ])
        assert result.returncode == 0, result.stderr
        assert "population" in result.stdout

    def test_zip_population_twice_rejected(self, tmp_path):
        result = run_script(SCRIPTS_DIR / "train_and_eval.py", [
            "--zip-population", str(tmp_path / "zip_population.xlsx"),
            "--aux", "zip_population=zip_pop",
        ])
        assert result.returncode == 2
        assert "not both" in result.stderr
