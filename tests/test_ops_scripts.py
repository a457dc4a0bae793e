import os, sys, json, pathlib, subprocess
import pytest

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
SCRIPT = PROJECT_ROOT / 'scripts' / 'smoke_test.py'


def run(cmd, **kw):
    env = dict(os.environ, LOG_LEVEL='ERROR')
    env.update(kw.pop('env', {}))
    return subprocess.run(cmd, capture_output=True, text=True, cwd=PROJECT_ROOT, env=env, **kw)


def test_smoke_against_sqlite(shop_db):
    proc = run([sys.executable, str(SCRIPT), 'sqlite', f'sqlite://{shop_db}', 'orders'],
               env={'SMOKE_FILTER': "status = 'active'"})
    assert proc.returncode == 0, f"{proc.stdout}\n{proc.stderr}"
    data = json.loads(proc.stdout)
    assert data['success'] is True
    assert data['table'] == 'orders'
    assert data['total_rows'] == 250
    assert data['filtered_rows'] == 50


def test_smoke_missing_database(tmp_path):
    proc = run([sys.executable, str(SCRIPT), 'sqlite', f'sqlite://{tmp_path / "gone.db"}'])
    assert proc.returncode == 1
    data = json.loads(proc.stdout)
    assert data['success'] is False
    assert 'not found' in data['error']


def test_smoke_usage():
    proc = run([sys.executable, str(SCRIPT)])
    assert proc.returncode == 1
    assert 'usage' in json.loads(proc.stdout)['error']
