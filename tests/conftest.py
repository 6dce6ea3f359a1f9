"""Global test fixtures."""

import os

# Keep developer config files out of test runs; must happen before Config is imported
os.environ.pop("CRS_CONFIG_FILE", None)
os.environ.pop("CRS_LOG_FILE", None)
