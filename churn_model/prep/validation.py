import logging
import math
import numpy as np
import pandas as pd
from churn_model.config import (ID_COL, TARGET_COL, POSITIVE_LABEL, NEGATIVE_LABEL,
                                CATEGORY_VALUES, NUMERIC_BOUNDS, REQUIRED_COLUMNS)
from churn_model.exceptions import SchemaError


class SchemaValidator:
    """
    Checks a raw customer batch against the expected columns, types and value sets.

    Every offending row is reported, a bad row never stops the checks on the rest.
    """

    def __init__(self, category_values=None, numeric_bounds=None):
        self.category_values = category_values or CATEGORY_VALUES
        self.numeric_bounds = numeric_bounds or NUMERIC_BOUNDS

    def validate(self, records, require_label=True):
        """
        Validate a batch and return it as a typed DataFrame.
        Args:
            records: list of mappings (column -> value) or a DataFrame
            require_label: True for training batches, False for batches to score
        Returns:
            New DataFrame with a positional index, known columns only
        Raises:
            SchemaError listing every (row_index, field, reason) found
        """
        df = pd.DataFrame(records).reset_index(drop=True)
        logging.info(f"Validating batch of {len(df)} records")

        errors = []
        required = REQUIRED_COLUMNS + ([TARGET_COL] if require_label else [])
        missing_cols = [col for col in required if col not in df.columns]
        for col in missing_cols:
            errors.append((None, col, 'missing required column'))

        if ID_COL in df.columns:
            errors.extend(self._check_ids(df[ID_COL]))

        for col, (lower, upper, integer_only) in self.numeric_bounds.items():
            if col in df.columns:
                errors.extend(self._check_numeric(df[col], lower, upper, integer_only))

        for col, allowed in self.category_values.items():
            if col in df.columns:
                errors.extend(self._check_category(df[col], allowed))

        if TARGET_COL in df.columns:
            errors.extend(self._check_label(df[TARGET_COL], require_label))

        if errors:
            errors.sort(key=lambda e: (-1 if e[0] is None else e[0], e[1]))
            logging.error(f"Batch rejected: {len(errors)} schema error(s) "
                          f"in {len({e[0] for e in errors if e[0] is not None})} row(s)")
            raise SchemaError(errors)

        validated = self._coerce(df)
        logging.info(f"Batch validated successfully. Shape: {validated.shape}")
        return validated

    @staticmethod
    def _is_missing(value):
        if value is None:
            return True
        if isinstance(value, str):
            return value.strip() == ''
        try:
            return bool(pd.isna(value))
        except (TypeError, ValueError):
            return False

    def _check_ids(self, ids):
        errors = []
        for row, value in ids.items():
            if self._is_missing(value):
                errors.append((row, ID_COL, 'customer_id is empty'))
        present = ids[~ids.map(self._is_missing).astype(bool)].astype(str)
        duplicated = present[present.duplicated(keep=False)]
        for row, value in duplicated.items():
            errors.append((row, ID_COL, f"duplicate customer_id {value!r}"))
        return errors

    def _check_numeric(self, values, lower, upper, integer_only):
        errors = []
        field = values.name
        # same parser as _coerce, anything it cannot read comes back NaN
        numbers = pd.to_numeric(values, errors='coerce')
        for row, value in values.items():
            if self._is_missing(value):
                errors.append((row, field, 'missing value'))
                continue
            if isinstance(value, (bool, np.bool_)) or pd.isna(numbers[row]):
                errors.append((row, field, f"not a number: {value!r}"))
                continue
            number = float(numbers[row])
            if not math.isfinite(number):
                errors.append((row, field, f"not a finite number: {value!r}"))
            elif integer_only and not number.is_integer():
                errors.append((row, field, f"not an integer: {value!r}"))
            elif lower is not None and number < lower:
                errors.append((row, field, f"{value!r} is below the minimum {lower}"))
            elif upper is not None and number > upper:
                errors.append((row, field, f"{value!r} is above the maximum {upper}"))
        return errors

    def _check_category(self, values, allowed):
        errors = []
        field = values.name
        for row, value in values.items():
            if self._is_missing(value):
                errors.append((row, field, 'missing value'))
            elif value not in allowed:
                errors.append((row, field, f"unexpected category {value!r}, expected one of {allowed}"))
        return errors

    def _check_label(self, labels, require_label):
        errors = []
        allowed = [POSITIVE_LABEL, NEGATIVE_LABEL]
        for row, value in labels.items():
            if self._is_missing(value):
                if require_label:
                    errors.append((row, TARGET_COL, 'missing churn label'))
            elif value not in allowed:
                errors.append((row, TARGET_COL, f"churn label must be one of {allowed}, got {value!r}"))
        return errors

    def _coerce(self, df):
        """Cast checked columns to their declared types (input frame untouched)"""
        columns = [col for col in REQUIRED_COLUMNS + [TARGET_COL] if col in df.columns]
        validated = df[columns].copy()
        validated[ID_COL] = validated[ID_COL].astype(str)
        for col, (_, _, integer_only) in self.numeric_bounds.items():
            numbers = pd.to_numeric(validated[col]).astype(float)
            validated[col] = numbers.astype('int64') if integer_only else numbers
        for col in self.category_values:
            validated[col] = validated[col].astype(str)
        if TARGET_COL in validated.columns:
            validated[TARGET_COL] = validated[TARGET_COL].where(
                ~validated[TARGET_COL].map(self._is_missing).astype(bool), None)
        return validated
