import logging
from dataclasses import dataclass
import pandas as pd
from sklearn.model_selection import train_test_split
from imblearn.over_sampling import SMOTENC
from churn_model.config import (TEST_SIZE, RANDOM_STATE, IMBALANCE_THRESHOLD,
                                SMOTE_K_NEIGHBORS, NUMERIC_BOUNDS, CATEGORICAL_FEATURES)
from churn_model.prep.dataprep import age_group, monthly_charge_range
from churn_model.exceptions import InvalidSplitError, UnknownCategoryError


@dataclass(frozen=True)
class DatasetSplit:
    x_train: pd.DataFrame
    x_eval: pd.DataFrame
    y_train: pd.Series
    y_eval: pd.Series

    @property
    def train_index(self):
        return list(self.x_train.index)

    @property
    def eval_index(self):
        return list(self.x_eval.index)


class DatasetSplitter:
    def __init__(self, test_size=TEST_SIZE, seed=RANDOM_STATE, stratify=True):
        self.test_size = test_size
        self.seed = seed
        self.stratify = stratify

    def split(self, features, labels):
        """
        Partition features/labels into training and evaluation subsets.
        The evaluation partition holds exactly round(test_size * N) rows and the
        partition only depends on the data and the seed.
        """
        n_rows = len(features)
        if len(labels) != n_rows:
            raise InvalidSplitError(f"Features have {n_rows} rows but labels have {len(labels)}")
        if not 0 < self.test_size < 1:
            raise InvalidSplitError(f"test_size must be in (0, 1), got {self.test_size}")

        n_eval = round(self.test_size * n_rows)
        n_train = n_rows - n_eval
        if n_eval == 0 or n_train == 0:
            raise InvalidSplitError(
                f"test_size={self.test_size} on {n_rows} rows leaves "
                f"{n_train} training and {n_eval} evaluation rows")

        stratify_on = labels if self.stratify and self._can_stratify(labels, n_train, n_eval) else None
        if self.stratify and stratify_on is None:
            logging.warning("Stratified split not possible for these class counts, using a plain random split")

        x_train, x_eval, y_train, y_eval = train_test_split(
            features, labels,
            test_size=n_eval,
            random_state=self.seed,
            stratify=stratify_on
        )
        logging.info(f"Split {n_rows} rows into {len(x_train)} train / {len(x_eval)} eval "
                     f"({'stratified' if stratify_on is not None else 'plain'}, seed={self.seed})")
        return DatasetSplit(x_train, x_eval, y_train, y_eval)

    @staticmethod
    def _can_stratify(labels, n_train, n_eval):
        counts = pd.Series(labels).value_counts()
        n_classes = len(counts)
        return counts.min() >= 2 and n_train >= n_classes and n_eval >= n_classes

    def rebalance(self, x_train, y_train, encoding, threshold=IMBALANCE_THRESHOLD):
        """
        Oversample the churn class with SMOTENC when its rate is at or below threshold (training data only).
        Synthetic rows take categories from their neighbours, and their buckets are
        re-derived from the interpolated age and monthly charge.
        """
        churn_rate = y_train.mean()
        minority_count = int(pd.Series(y_train).value_counts().min())
        use_smote = churn_rate <= threshold and y_train.nunique() == 2
        logging.info(f"Churn rate: {churn_rate:.2%} | SMOTE {'enabled' if use_smote else 'disabled'}")
        if not use_smote:
            return x_train, y_train

        if minority_count <= SMOTE_K_NEIGHBORS:
            logging.warning(f"SMOTE skipped: {minority_count} minority rows, "
                            f"needs more than {SMOTE_K_NEIGHBORS}")
            return x_train, y_train

        logging.info("Applying SMOTE for class imbalance")
        smote = SMOTENC(
            categorical_features=[x_train.columns.get_loc(col) for col in CATEGORICAL_FEATURES],
            random_state=self.seed,
            k_neighbors=SMOTE_K_NEIGHBORS
        )
        x_resampled, y_resampled = smote.fit_resample(x_train, y_train)
        x_resampled = self._rederive_buckets(x_resampled, encoding)
        logging.info(f"Training rows after SMOTE: {len(x_resampled)}")
        return x_resampled, y_resampled

    @staticmethod
    def _rederive_buckets(x, encoding):
        x = x.copy()
        for col, (_, _, integer_only) in NUMERIC_BOUNDS.items():
            if integer_only:
                x[col] = x[col].round()
        for col in CATEGORICAL_FEATURES:
            x[col] = x[col].astype('int64')

        for col, source, bucket_of in (('age_group', 'age', age_group),
                                       ('monthly_charge_range', 'monthly_charge', monthly_charge_range)):
            codes = encoding.codes(col)
            labels = x[source].map(bucket_of)
            unknown = sorted(set(labels) - set(codes))
            if unknown:
                raise UnknownCategoryError([(col, label) for label in unknown])
            x[col] = labels.map(codes).astype('int64')
        return x
