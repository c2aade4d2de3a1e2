#!/usr/bin/env python3
"""Direct launcher for the Daily Budget dashboard.

This script launches Streamlit on ``daily_budget/dashboard.py`` with the
project root on the import path.
"""

import os
import subprocess
import sys
from pathlib import Path

# Get the project root and dashboard module
project_root = Path(__file__).parent.resolve()
dashboard_path = project_root / "daily_budget" / "dashboard.py"

if __name__ == "__main__":
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(project_root), env.get("PYTHONPATH")]))
    subprocess.run(
        [sys.executable, "-m", "streamlit", "run", str(dashboard_path)],
        env=env,
    )
