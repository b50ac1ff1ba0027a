import json
import logging
from dataclasses import dataclass
from churn_model.config import (TARGET_COL, POSITIVE_LABEL, AGE_GROUP_BINS,
                                MONTHLY_CHARGE_BINS, NUMERIC_FEATURES,
                                CATEGORICAL_FEATURES, FEATURE_COLUMNS)
from churn_model.exceptions import UnknownCategoryError


def bucket(value, bins):
    """Return the label of the bin holding value (lower inclusive, upper exclusive)"""
    for label, lower, upper in bins:
        if (lower is None or value >= lower) and (upper is None or value < upper):
            return label
    raise ValueError(f"{value!r} does not fall in any bucket of {bins}")


def age_group(age):
    return bucket(age, AGE_GROUP_BINS)


def monthly_charge_range(charge):
    return bucket(charge, MONTHLY_CHARGE_BINS)


@dataclass(frozen=True)
class CategoryEncoding:
    """
    Fixed category -> integer code mapping, one entry per categorical feature.

    The code of a category is its position in the field's tuple. The mapping is
    built once from a training batch and reused verbatim for every later batch.
    """
    categories: tuple  # ((field, (category, ...)), ...)

    @classmethod
    def fit(cls, df, fields=None):
        fields = fields or CATEGORICAL_FEATURES
        return cls(tuple(
            (field, tuple(sorted(df[field].astype(str).unique())))
            for field in fields
        ))

    @property
    def fields(self):
        return [field for field, _ in self.categories]

    def codes(self, field):
        for name, values in self.categories:
            if name == field:
                return {value: code for code, value in enumerate(values)}
        raise KeyError(f"No encoding fitted for field '{field}'")

    def encode(self, df):
        """Replace every categorical column with its integer codes"""
        encoded = df.copy()
        unknown = []
        for field in self.fields:
            mapping = self.codes(field)
            for value in df[field].unique():
                if value not in mapping:
                    unknown.append((field, value))
            encoded[field] = df[field].map(mapping)

        if unknown:
            logging.error(f"Found {len(unknown)} category value(s) unseen at fit time: {unknown}")
            raise UnknownCategoryError(unknown)

        for field in self.fields:
            encoded[field] = encoded[field].astype('int64')
        return encoded

    def to_dict(self):
        return {field: list(values) for field, values in self.categories}

    @classmethod
    def from_dict(cls, data):
        return cls(tuple((field, tuple(values)) for field, values in data.items()))

    def save(self, path):
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=4)
        logging.info(f"Category encoding saved to {path}")

    @classmethod
    def load(cls, path):
        with open(path) as f:
            return cls.from_dict(json.load(f))


class FeatureEngineer:
    """Derives bucket features and turns a validated batch into a numeric matrix"""

    @staticmethod
    def add_buckets(df):
        """Append age_group and monthly_charge_range to a copy of the batch"""
        df = df.copy()
        df['age_group'] = df['age'].map(age_group)
        df['monthly_charge_range'] = df['monthly_charge'].map(monthly_charge_range)
        return df

    @staticmethod
    def extract_labels(df):
        """Encode churn_label as 1 (Yes) / 0 (No)"""
        if TARGET_COL not in df.columns or df[TARGET_COL].isna().any():
            raise ValueError(f"Column '{TARGET_COL}' must be present and complete to extract labels")
        return (df[TARGET_COL] == POSITIVE_LABEL).astype('int64').rename(TARGET_COL)

    def fit_transform(self, df):
        """
        Build a fresh encoding from a validated training batch and apply it.
        Returns:
            (features, labels, encoding)
        """
        logging.info("Starting feature engineering on training batch...")
        with_buckets = self.add_buckets(df)
        encoding = CategoryEncoding.fit(with_buckets)
        features = self._build(with_buckets, encoding)
        labels = self.extract_labels(df)
        logging.info(f"Feature matrix built. Shape: {features.shape} | "
                     f"churn rate: {labels.mean():.2%}")
        return features, labels, encoding

    def transform(self, df, encoding, with_labels=False):
        """Apply an already fitted encoding to a validated batch"""
        features = self._build(self.add_buckets(df), encoding)
        if with_labels:
            return features, self.extract_labels(df)
        return features

    @staticmethod
    def _build(with_buckets, encoding):
        features = encoding.encode(with_buckets)[FEATURE_COLUMNS]
        return features.astype({col: 'float64' for col in NUMERIC_FEATURES})
