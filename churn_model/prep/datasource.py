import pandas as pd
from churn_model.config import (DATA_DIR, DATA_FILE, ID_COL, TARGET_COL,
                                REQUIRED_COLUMNS, MISSING_VALUES, logging)


class DataSource:
    @staticmethod
    def load_data(file_path=None):
        """Load a customer batch from CSV file"""
        file_path = file_path or DATA_DIR / DATA_FILE
        logging.info(f"Loading data from {file_path}")
        # ids such as "NA" are real customers, only data columns get NA parsing
        na_values = {col: MISSING_VALUES for col in REQUIRED_COLUMNS + [TARGET_COL] if col != ID_COL}
        orig_df = pd.read_csv(file_path, dtype={ID_COL: str},
                              keep_default_na=False, na_values=na_values)
        logging.info(f"Data loaded successfully. Shape: {orig_df.shape}")

        return orig_df

    @staticmethod
    def save_scores(scores, file_path):
        """Write the scoring table for the reporting layer"""
        scores.to_csv(file_path, index=False)
        logging.info(f"Scores for {len(scores)} customers saved to {file_path}")
