import os
from typing import List, Optional

import pandas as pd
from loguru import logger

from lotto645.config import DATA_FILE_PATH
from lotto645.config_manager import ConfigurationManager
from lotto645.data_types import DrawRecord
from lotto645.exceptions import InvalidDrawError

NUMBER_COLUMNS = ["n1", "n2", "n3", "n4", "n5", "n6"]
REQUIRED_COLUMNS = ["draw_number", "date"] + NUMBER_COLUMNS + ["bonus"]


class DataLoader:
    """
    Loads historical Lotto 6/45 draws from a CSV file.
    This class is the boundary where malformed rows are rejected; everything
    past it works with validated DrawRecords.
    """

    def __init__(self, data_file_path: str = DATA_FILE_PATH):
        self.data_file_path = data_file_path
        logger.info(f"DataLoader initialized for file: {data_file_path}")

    def load_historical_data(self, path: Optional[str] = None) -> pd.DataFrame:
        """
        Loads and cleans the draw history.

        Returns:
            pd.DataFrame: One row per draw with REQUIRED_COLUMNS, sorted by
                          draw number with duplicates removed.

        Raises:
            FileNotFoundError: If the CSV file does not exist.
            InvalidDrawError: If columns are missing or a row cannot be parsed.
        """
        path = path or self.data_file_path
        if not os.path.exists(path):
            logger.error(f"Data file not found at {path}")
            raise FileNotFoundError(path)

        try:
            df = pd.read_csv(path)
        except pd.errors.ParserError as e:
            raise InvalidDrawError(f"Could not parse {path}: {e}") from e
        logger.info(f"Successfully loaded {len(df)} rows from {path}")

        df.columns = [str(col).strip().lower() for col in df.columns]
        missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]
        if missing:
            raise InvalidDrawError(f"Draw file {path} is missing columns: {missing}")

        df = df[REQUIRED_COLUMNS].copy()
        numeric_cols = ["draw_number"] + NUMBER_COLUMNS + ["bonus"]
        for col in numeric_cols:
            df[col] = pd.to_numeric(df[col], errors="coerce")
        bad_rows = df[df[numeric_cols].isna().any(axis=1)]
        if not bad_rows.empty:
            raise InvalidDrawError(
                f"Non-numeric values in draw rows: {bad_rows['draw_number'].tolist()}"
            )
        df[numeric_cols] = df[numeric_cols].astype(int)
        df["date"] = pd.to_datetime(df["date"], errors="coerce")
        if df["date"].isna().any():
            raise InvalidDrawError("Draw file contains unparseable dates")
        df["date"] = df["date"].dt.strftime("%Y-%m-%d")

        before = len(df)
        df = df.sort_values("draw_number", kind="mergesort").drop_duplicates(subset=["draw_number"], keep="last")
        if len(df) < before:
            logger.warning(f"Dropped {before - len(df)} duplicate draw rows")

        logger.info("Data cleaning and structuring complete.")
        return df.reset_index(drop=True)

    def load_draws(self, path: Optional[str] = None) -> List[DrawRecord]:
        """Loads the history as validated DrawRecords in draw-number order."""
        df = self.load_historical_data(path)
        draws = [
            DrawRecord(
                draw_number=int(row.draw_number),
                date=row.date,
                numbers=tuple(int(getattr(row, col)) for col in NUMBER_COLUMNS),
                bonus=int(row.bonus),
            )
            for row in df.itertuples(index=False)
        ]
        if draws:
            logger.info(f"Loaded {len(draws)} draws ({draws[0].draw_number}..{draws[-1].draw_number})")
        else:
            logger.warning(f"Draw file {path or self.data_file_path} is empty")
        return draws


def get_data_loader(config_file: Optional[str] = None) -> DataLoader:
    """
    Factory function to get an instance of DataLoader.
    """
    manager = ConfigurationManager(config_file) if config_file else ConfigurationManager()
    data_file = manager.get_config_value("paths", "data_file", DATA_FILE_PATH)
    return DataLoader(data_file)
