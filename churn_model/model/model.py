import shap
import pandas as pd
import numpy as np
import logging
import pickle
import hashlib
from dataclasses import dataclass
from sklearn.ensemble import RandomForestClassifier
from churn_model.config import (RANDOM_STATE, N_ESTIMATORS, N_JOBS,
                                MIN_TRAINING_ROWS, DECISION_THRESHOLD, SHAP_TOP_N)
from churn_model.exceptions import InsufficientDataError, FeatureMismatchError


@dataclass(frozen=True)
class TrainedModel:
    """Fitted forest plus everything needed to feed it new customers"""
    estimator: RandomForestClassifier
    encoding: object  # CategoryEncoding
    feature_names: tuple
    n_estimators: int
    seed: int
    model_version: str


class ChurnClassifier:
    def __init__(self, n_jobs=N_JOBS, min_rows=MIN_TRAINING_ROWS):
        self.n_jobs = n_jobs
        self.min_rows = min_rows

    def fit(self, x_train, y_train, encoding, n_estimators=N_ESTIMATORS, seed=RANDOM_STATE):
        """
        Train a random forest on the engineered training matrix.
        Args:
            x_train: Feature DataFrame (column order becomes the model's contract)
            y_train: Labels (1 = churn, 0 = stay)
            encoding: CategoryEncoding the features were built with
            n_estimators: Number of trees
            seed: Seeds bootstrap sampling and per-split feature subsets
        Returns:
            TrainedModel
        """
        y_train = pd.Series(y_train)
        if len(x_train) < self.min_rows:
            raise InsufficientDataError(
                f"Training set has {len(x_train)} rows, at least {self.min_rows} are required")
        classes = sorted(y_train.unique())
        if len(classes) < 2:
            raise InsufficientDataError(
                f"Training labels hold a single class {classes}, both churn and non-churn rows are required")

        logging.info(f"Training Random Forest ({n_estimators} trees, seed={seed}) "
                     f"on {len(x_train)} rows...")
        estimator = RandomForestClassifier(
            n_estimators=n_estimators,
            max_features='sqrt',
            bootstrap=True,
            random_state=seed,
            n_jobs=self.n_jobs
        )
        estimator.fit(x_train.to_numpy(dtype=float), y_train.to_numpy())

        model = TrainedModel(
            estimator=estimator,
            encoding=encoding,
            feature_names=tuple(x_train.columns),
            n_estimators=n_estimators,
            seed=seed,
            model_version=self._model_version(x_train, y_train, n_estimators, seed)
        )
        logging.info(f"Model {model.model_version} trained")
        return model

    @staticmethod
    def _model_version(x_train, y_train, n_estimators, seed):
        digest = hashlib.sha256()
        digest.update(','.join(x_train.columns).encode())
        digest.update(np.ascontiguousarray(x_train.to_numpy(dtype=float)).tobytes())
        digest.update(np.ascontiguousarray(y_train.to_numpy(dtype=np.int64)).tobytes())
        return f"rf-n{n_estimators}-s{seed}-{digest.hexdigest()[:10]}"

    @staticmethod
    def _check_features(model, features):
        if list(features.columns) != list(model.feature_names):
            raise FeatureMismatchError(model.feature_names, features.columns)
        return features.to_numpy(dtype=float)

    def predict_probability(self, model, features):
        """Fraction of trees voting churn, one value per row"""
        x = self._check_features(model, features)
        if len(x) == 0:
            return np.zeros(0)
        churn_index = list(model.estimator.classes_).index(1)
        votes = np.zeros(len(x))
        for tree in model.estimator.estimators_:
            votes += tree.predict(x) == churn_index
        return votes / len(model.estimator.estimators_)

    def predict(self, model, features):
        """Majority vote across the trees (1 = churn)"""
        proba = self.predict_probability(model, features)
        return (proba >= DECISION_THRESHOLD).astype(int)

    def analyze_shap(self, model, features, top_n=SHAP_TOP_N):
        """Mean absolute SHAP value per feature for the churn class, top_n features"""
        x = pd.DataFrame(self._check_features(model, features), columns=model.feature_names)
        explainer = shap.TreeExplainer(model.estimator)
        shap_values = explainer.shap_values(x)
        if isinstance(shap_values, list):
            shap_values = shap_values[1]  # Use positive class
        elif np.ndim(shap_values) == 3:
            shap_values = shap_values[:, :, 1]

        return pd.DataFrame({
            'feature': x.columns,
            'shap_importance': np.abs(shap_values).mean(axis=0)
        }).sort_values('shap_importance', ascending=False).head(top_n).reset_index(drop=True)

    @staticmethod
    def save_model(model, path):
        """Save trained model to disk"""
        with open(path, 'wb') as f:
            pickle.dump({
                'model': model,
                'metadata': {
                    'model_version': model.model_version,
                    'n_estimators': model.n_estimators,
                    'seed': model.seed
                }
            }, f)
        logging.info(f"Model saved to {path}")

    @staticmethod
    def load_model(path):
        with open(path, 'rb') as f:
            model = pickle.load(f)['model']
        logging.info(f"Model {model.model_version} loaded from {path}")
        return model
