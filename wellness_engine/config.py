"""
Engine Configuration

Loads environment variables and provides configuration settings.
"""

import os
import logging
from pathlib import Path
from dotenv import load_dotenv

# Load .env.local first (for local development), then .env as fallback
env_local = Path.cwd() / '.env.local'
env_file = Path.cwd() / '.env'

if env_local.exists():
    load_dotenv(env_local)
elif env_file.exists():
    load_dotenv(env_file)

# Storage Config
WELLNESS_DATA_DIR = os.getenv("WELLNESS_DATA_DIR", str(Path.home() / ".wellness_engine"))
WELLNESS_NAMESPACE = os.getenv("WELLNESS_NAMESPACE", "mental_health")

# Simulated journal analysis latency (seconds). 0 runs inline.
JOURNAL_ANALYSIS_DELAY = float(os.getenv("JOURNAL_ANALYSIS_DELAY", "2.0"))

# "today_pending" or "today_breaks" (see engagement.StreakPolicy)
STREAK_POLICY = os.getenv("STREAK_POLICY", "today_pending")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(level: str = LOG_LEVEL):
    """Configure root logging for host applications that embed the engine."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT
    )
