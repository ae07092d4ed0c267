import re
import sys
from pathlib import Path

import pandas as pd
from loguru import logger

from helper_api.store import SqlConfigStore, make_engine
from helper_engine.src.models import LaborRateGroup
from helper_engine.src.store import ConfigStore, LaborRateGroupBook


def normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    df = df.copy()
    df.columns = [col.strip().lower().replace(" ", "_") for col in df.columns]
    return df


def validate_columns(df: pd.DataFrame) -> None:
    required = {"name", "makes"}
    missing = required - set(df.columns)
    if missing:
        raise ValueError(f"Missing required columns: {sorted(missing)}")
    if "labor_rate" not in df.columns and "labor_rate_cents" not in df.columns:
        raise ValueError("Missing required columns: ['labor_rate'] or ['labor_rate_cents']")


def apply_rules(df: pd.DataFrame) -> pd.DataFrame:
    df = df.copy()

    df["name"] = df["name"].astype(str).str.strip()
    df["makes"] = df["makes"].fillna("").astype(str).map(
        lambda value: [m.strip() for m in re.split(r"[;,]", value) if m.strip()]
    )

    # Dollars per hour unless the sheet already carries cents
    if "labor_rate_cents" in df.columns:
        cents = pd.to_numeric(df["labor_rate_cents"], errors="coerce")
    else:
        dollars = pd.to_numeric(
            df["labor_rate"].astype(str).str.replace(r"[$,]", "", regex=True), errors="coerce"
        )
        cents = dollars * 100
    df["labor_rate"] = cents.round()

    empty_mask = (df["name"] == "") | (df["makes"].map(len) == 0) | df["labor_rate"].isna()
    if empty_mask.any():
        logger.warning(f"Dropping {int(empty_mask.sum())} incomplete labor rate rows")
    df = df.loc[~empty_mask].reset_index(drop=True)
    df["labor_rate"] = df["labor_rate"].astype(int)

    return df


def load_groups_csv(csv_path: Path) -> list[LaborRateGroup]:
    df = pd.read_csv(csv_path)
    df = normalize_columns(df)
    validate_columns(df)
    df = apply_rules(df)
    return [
        LaborRateGroup(name=row["name"], makes=row["makes"], labor_rate=int(row["labor_rate"]))
        for row in df.to_dict(orient="records")
    ]


def seed_groups(csv_path: Path, store: ConfigStore) -> int:
    if not csv_path.exists():
        raise FileNotFoundError(f"CSV not found at {csv_path}")
    groups = load_groups_csv(csv_path)
    LaborRateGroupBook(store).replace_all(groups)
    logger.info(f"Seeded {len(groups)} labor rate groups from {csv_path}")
    return len(groups)


def main() -> None:
    repo_root = Path(__file__).resolve().parent.parent
    csv_path = Path(sys.argv[1]) if len(sys.argv) > 1 else repo_root / "labor_rate_groups.csv"
    count = seed_groups(csv_path, SqlConfigStore(make_engine()))
    print(f"Seeded {count} labor rate groups")


if __name__ == "__main__":
    main()
