from __future__ import annotations

import os
import tempfile

# Keep test runs away from the real data/ directory. This must happen before
# winesim.webapp is imported, since importing it builds the module-level app.
os.environ.setdefault("WINESIM_DATA_DIR", tempfile.mkdtemp(prefix="winesim-test-"))
