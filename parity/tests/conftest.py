from __future__ import annotations

import sys
from pathlib import Path

# Script modules are imported by bare name (python3 scripts/parity_rpc.py ...)
SCRIPTS = Path(__file__).resolve().parents[1] / "scripts"
# Keep it ahead of site-packages so local modules (e.g. outcome) are not
# shadowed by same-named installed distributions.
if str(SCRIPTS) in sys.path:
    sys.path.remove(str(SCRIPTS))
sys.path.insert(0, str(SCRIPTS))
