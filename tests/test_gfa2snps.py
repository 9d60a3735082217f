import pytest
import subprocess
import sys
import os

import pandas as pd

# Constants
TEST_DIR = os.path.dirname(os.path.abspath(__file__))
ROOT_DIR = os.path.join(TEST_DIR, '..')
SCRIPT_NAME = 'gfa2snps.py'
SCRIPT = os.path.join(ROOT_DIR, 'scripts', SCRIPT_NAME)
INPUT_DIR = os.path.join(TEST_DIR, 'gfa2snps', 'input')
TRUTH_DIR = os.path.join(TEST_DIR, 'gfa2snps', 'truth')
OUTPUT_DIR = os.path.join(TEST_DIR, 'gfa2snps', 'output')
TYPE = ['basic']


def script_env() -> dict:
    env = os.environ.copy()
    env['PYTHONPATH'] = os.pathsep.join([ROOT_DIR, env.get('PYTHONPATH', '')])
    return env


# Run command
def run_script(gfa_type: str, ref: str = 'ref', check: bool = True) -> subprocess.CompletedProcess:

    output = os.path.join(OUTPUT_DIR, gfa_type + '.output.snps.tsv')

    # create output dir if not exist
    if not os.path.exists(OUTPUT_DIR):
        os.makedirs(OUTPUT_DIR)
    # clean previous test run if exist
    if os.path.exists(output):
        os.remove(output)

    command = [sys.executable, SCRIPT,
               '-g', os.path.join(INPUT_DIR, gfa_type + '.gfa'),
               '-u', os.path.join(INPUT_DIR, gfa_type + '.bubbles.tsv'),
               '-r', ref,
               '-o', output]

    return subprocess.run(command, check=check, capture_output=True, text=True, env=script_env())


# Test if the command runs successfully
@pytest.mark.order(1)
@pytest.mark.parametrize("gfa_type", TYPE)
def test_script_execution(gfa_type: str) -> None:
    try:
        run_script(gfa_type)  # This will raise CalledProcessError on failure
        assert True
    except subprocess.CalledProcessError as e:
        pytest.fail(f"{SCRIPT_NAME} failed with error: {e.stderr}")


# Compare output files with truth
@pytest.mark.order(2)
@pytest.mark.parametrize("gfa_type", TYPE)
def test_output(gfa_type: str) -> None:

    file_truth = os.path.join(TRUTH_DIR, gfa_type + '.snps.tsv')
    file_output = os.path.join(OUTPUT_DIR, gfa_type + '.output.snps.tsv')

    df_truth = pd.read_csv(file_truth, sep='\t')
    df_output = pd.read_csv(file_output, sep='\t')
    assert df_truth.equals(df_output), f"SNP table mismatch for GFA: {gfa_type}"

    os.remove(file_output)


# Catch error
@pytest.mark.order(3)
def test_missing_reference() -> None:

    res = run_script('basic', ref='chr_missing', check=False)

    assert res.returncode != 0
    assert 'ReferencePathError' in res.stderr
