import os
from pathlib import Path

# Local overrides for integration runs, e.g. TESTS_CONSENSUS_CLIENT_URI=http://localhost:5052
DOTENV = Path(".env")

if DOTENV.exists():
    for line in DOTENV.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        key, value = line.split("=", maxsplit=1)
        os.environ.setdefault(key.strip(), value.strip())
