"""
Streamlit entrypoint for the ParkDesk admin console.

  streamlit run parkdesk/app.py
"""

from __future__ import annotations

import sys
from pathlib import Path


def _ensure_repo_root_on_path() -> None:
    # `streamlit run parkdesk/app.py` sets sys.path[0] == "parkdesk", which breaks `import parkdesk.*`.
    repo_root = Path(__file__).resolve().parents[1]
    repo_root_s = str(repo_root)
    if repo_root_s not in sys.path:
        sys.path.insert(0, repo_root_s)


_ensure_repo_root_on_path()

from parkdesk.ui.app import main  # noqa: E402

if __name__ == "__main__":
    main()
