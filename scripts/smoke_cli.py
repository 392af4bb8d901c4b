"""
Lightweight smoke runner for the CLI.

Always runs the offline transport; runs the real transport only when a
credential is available to the settings home.
"""

from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path
from typing import List


def _run(cmd: List[str], env: dict) -> None:
    print(f"\n=== Smoke: {' '.join(cmd[3:])} ===")
    try:
        subprocess.run(cmd, check=True, env=env)
    except subprocess.CalledProcessError as exc:  # noqa: BLE001
        print(f"smoke FAILED: {exc}")


def main() -> None:
    project_root = Path(__file__).resolve().parents[1]
    # Ensure package is importable in subprocess even if not installed.
    env = os.environ.copy()
    existing_pp = env.get("PYTHONPATH", "")
    env["PYTHONPATH"] = f"{project_root / 'src'}{os.pathsep}{existing_pp}" if existing_pp else str(project_root / "src")

    base = [sys.executable, "-m", "codexcfg.cli"]
    _run(base + ["profile"], env)
    _run(base + ["instructions"], env)
    _run(base + ["run", "--local", "--prompt", "Hello from Local"], env)
    _run(base + ["run", "--local", "--stream", "--wire-api", "chat", "--prompt", "Hello from Local"], env)

    if not env.get("OPENAI_API_KEY"):
        print("Skipping openai: missing OPENAI_API_KEY")
        return
    _run(base + ["run", "--prompt", "Say hello in one word."], env)


if __name__ == "__main__":
    main()
