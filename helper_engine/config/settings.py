"""Service configuration and settings."""

import os
from pathlib import Path
import yaml
from dotenv import load_dotenv

load_dotenv()

# Paths
PROJECT_ROOT = Path(__file__).parent.parent.parent
DATA_DIR = Path(os.getenv("HELPER_DATA_DIR", str(PROJECT_ROOT / "data")))
SYMPTOMS_PATH = Path(__file__).parent / "symptoms.yaml"

# Tekmetric public API (server side, API key auth)
TEKMETRIC_BASE_URL = os.getenv("TEKMETRIC_BASE_URL", "https://sandbox.tekmetric.com/api/v1")

# Tekmetric web app origin, used when no origin was captured from traffic
TEKMETRIC_WEB_URL = os.getenv("TEKMETRIC_WEB_URL", "https://shop.tekmetric.com")

HTTP_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", "30"))
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{DATA_DIR}/helper.db")

# Config store keys shared with the extension side
LABOR_RATE_GROUPS_KEY = "laborRateGroups"
LAST_JOB_KEY = "lastJobData"
LAST_JOB_TIMESTAMP_KEY = "timestamp"
CURRENT_SHOP_KEY = "currentTekmetricShopId"


def ensure_data_dir() -> Path:
    DATA_DIR.mkdir(parents=True, exist_ok=True)
    return DATA_DIR


def load_symptom_config(path: Path | None = None) -> dict:
    """Load the symptom catalog from YAML."""
    with open(path or SYMPTOMS_PATH) as f:
        return yaml.safe_load(f)
