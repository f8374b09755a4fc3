import os

DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite://")

# Records per submit call
BATCH_SIZE = int(os.environ.get("CSVIMPORT_BATCH_SIZE", "10"))

# Seconds to wait between batches so progress can be observed
BATCH_PAUSE = float(os.environ.get("CSVIMPORT_BATCH_PAUSE", "0.2"))

# Largest accepted upload; Flask answers 413 beyond this
MAX_UPLOAD_BYTES = int(os.environ.get("CSVIMPORT_MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))
