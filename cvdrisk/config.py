"""
CVD Risk Engine: Configuration
===============================
Runtime settings for logging. Loads overrides from the project-level
.env file. Clinical constants live beside the code that uses them.
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# ── Paths ───────────────────────────────────────────────────────────────
PROJECT_ROOT = Path(__file__).resolve().parent.parent

# ── Load .env ───────────────────────────────────────────────────────────
load_dotenv(PROJECT_ROOT / ".env")

LOG_LEVEL: str = os.getenv("CVDRISK_LOG_LEVEL", "INFO")
LOG_FILE: Optional[str] = os.getenv("CVDRISK_LOG_FILE") or None
