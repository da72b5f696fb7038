# tasks.py
# Invoke is the source of truth.
# Primary:
#   invoke dev         -> run API + UI together (cleans up API on exit)
# Helpers:
#   invoke api | ui | ingest | initialize | health | test

from invoke import task
import json, os, sys, subprocess, time
from pathlib import Path
import requests
from dotenv import load_dotenv

from app.config import ConfigResolver

load_dotenv()


def _api_port() -> int:
    """SERVER_PORT as the API itself resolves it (config files, .env, PORT)."""
    return ConfigResolver().settings().server_port


PY       = sys.executable
API_HOST = os.environ.get("HOST", "0.0.0.0")
API_PORT = _api_port()
UI_PORT  = int(os.environ.get("UI_PORT", "3000"))
API_BASE = os.environ.get("KARL_API_BASE", f"http://localhost:{API_PORT}")


def _run(cmd, env: dict | None = None, **kwargs):
    """Run shell cmd with repo root on PYTHONPATH, plus optional env overrides."""
    base = os.environ.copy()
    root = str(Path(".").resolve())
    base["PYTHONPATH"] = f'{root}{os.pathsep}{base.get("PYTHONPATH","")}'
    if env:
        base.update(env)
    print(f"$ {cmd}")
    return subprocess.run(cmd, shell=True, check=True, env=base, **kwargs)


def _call(method: str, path: str, timeout: int = 30) -> dict:
    resp = requests.request(method, f"{API_BASE.rstrip('/')}/api{path}", timeout=timeout)
    return resp.json()


@task
def ingest(c, url=None, dry_run=False):
    """
    Fetch pages -> chunk -> embed into Neo4j without starting the API.
    Default URLs come from DOCUMENT_URLS; override with --url https://...
    """
    flags = f' --url "{url}"' if url else ""
    if dry_run:
        flags += " --dry-run"
    _run(f"{PY} -m app.ingest{flags}")


@task
def api(c, reload=True):
    """Start FastAPI only."""
    reload_flag = "--reload" if str(reload).lower() != "false" else ""
    _run(f"{PY} -m uvicorn app.main:create_app --factory --host {API_HOST} --port {API_PORT} {reload_flag}")


@task
def ui(c):
    """Start Streamlit UI only."""
    _run(f"streamlit run ui/streamlit_app.py --server.port {UI_PORT}", env={"KARL_API_BASE": API_BASE})


@task
def health(c):
    """Print /api/health from a running API."""
    print(json.dumps(_call("GET", "/health"), indent=2))


@task
def initialize(c):
    """Ask a running API to load the configured pages into Neo4j."""
    print(json.dumps(_call("POST", "/initialize", timeout=900), indent=2))


@task
def test(c):
    """Run the test suite."""
    _run(f"{PY} -m pytest -q tests")


@task
def dev(c, reload=True):
    """
    Run API + UI together.
    Works on Windows/macOS/Linux. Ctrl+C in Streamlit will shut down API too.
    """
    env_api = os.environ.copy()
    env_api["PYTHONPATH"] = f'{Path(".").resolve()}{os.pathsep}{env_api.get("PYTHONPATH","")}'

    api_args = [PY, "-m", "uvicorn", "app.main:create_app", "--factory", "--host", API_HOST, "--port", str(API_PORT)]
    if str(reload).lower() != "false":
        api_args.append("--reload")

    api_proc = subprocess.Popen(api_args, env=env_api)
    print(f"[api] pid={api_proc.pid} http://localhost:{API_PORT}/api")

    # crude health wait
    time.sleep(0.8)

    try:
        _run(f"streamlit run ui/streamlit_app.py --server.port {UI_PORT}", env={"KARL_API_BASE": API_BASE})
    finally:
        if api_proc.poll() is None:
            try:
                api_proc.terminate()
                api_proc.wait(timeout=5)
            except subprocess.TimeoutExpired:
                api_proc.kill()
