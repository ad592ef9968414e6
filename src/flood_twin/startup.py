"""Early-boot side effects: dotenv and logging.

This module is imported before any other flood_twin modules so that
environment variables from ``.env`` are visible when settings are read.
"""

import logging

# -- Load .env (must happen before Settings.from_env) --------------------------
from dotenv import load_dotenv

load_dotenv()

# -- flood_twin / third-party logging setup -----------------------------------
app_logger = logging.getLogger("flood_twin")
app_logger.setLevel(logging.INFO)
if not app_logger.handlers:
    handler = logging.StreamHandler()
    handler.setLevel(logging.INFO)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s - %(message)s"))
    app_logger.addHandler(handler)
app_logger.propagate = False

logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
