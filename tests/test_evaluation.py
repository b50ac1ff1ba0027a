import json
import math
from types import SimpleNamespace
import pytest
import numpy as np
import pandas as pd
from churn_model.model.evaluation import Evaluator, safe_ratio
from churn_model.model.model import ChurnClassifier
from churn_model.prep.split import DatasetSplitter


class FixedClassifier:
    """Returns canned predictions so the metric arithmetic can be checked directly"""

    def __init__(self, predictions):
        self.predictions = np.asarray(predictions)

    def predict(self, model, features):
        return self.predictions

    def predict_probability(self, model, features):
        return self.predictions.astype(float)


MODEL = SimpleNamespace(model_version='rf-test', seed=0)


def evaluate(y_true, y_pred):
    features = pd.DataFrame({'x': range(len(y_true))})
    return Evaluator(FixedClassifier(y_pred)).evaluate(MODEL, features, pd.Series(y_true))


def test_confusion_counts_and_metrics():
    report = evaluate([1, 1, 1, 0, 0, 0, 0, 1], [1, 1, 0, 0, 0, 1, 0, 1])

    assert (report.true_positive, report.false_positive,
            report.true_negative, report.false_negative) == (3, 1, 3, 1)
    assert report.precision == pytest.approx(0.75)
    assert report.recall == pytest.approx(0.75)
    assert report.f1 == pytest.approx(0.75)
    assert report.accuracy == pytest.approx(0.75)
    assert report.confusion_matrix == [[3, 1], [1, 3]]
    assert report.per_class['No']['support'] == 4


def test_no_positive_predictions_gives_zero_not_nan():
    report = evaluate([1, 0, 0, 1], [0, 0, 0, 0])

    assert report.precision == 0.0
    assert report.recall == 0.0
    assert report.f1 == 0.0
    assert not any(math.isnan(v) for v in (report.precision, report.recall, report.f1))


def test_no_positive_labels_gives_zero_recall_and_no_auc():
    report = evaluate([0, 0, 0], [0, 1, 0])

    assert report.recall == 0.0
    assert report.precision == 0.0
    assert report.roc_auc is None
    assert report.n_samples == 3


def test_safe_ratio():
    assert safe_ratio(1, 0) == 0.0
    assert safe_ratio(1, 4) == 0.25


def test_report_counts_sum_to_eval_size(engineered):
    features, labels, encoding = engineered
    split = DatasetSplitter().split(features, labels)
    classifier = ChurnClassifier()
    model = classifier.fit(split.x_train, split.y_train, encoding, n_estimators=15, seed=2)

    report = Evaluator(classifier).evaluate(model, split.x_eval, split.y_eval)
    again = Evaluator(classifier).evaluate(model, split.x_eval, split.y_eval)

    assert (report.true_positive + report.false_positive +
            report.true_negative + report.false_negative) == len(split.y_eval)
    assert report.model_version == model.model_version
    assert report == again


def test_save_report_and_plot(tmp_path):
    report = evaluate([1, 0, 1, 0], [1, 0, 0, 0])
    evaluator = Evaluator()

    evaluator.save_report(report, tmp_path / 'metrics.json', top_shap_features=[])
    evaluator.plot_confusion_matrix(report, tmp_path / 'cm.png')

    saved = json.loads((tmp_path / 'metrics.json').read_text())
    assert saved['model_version'] == 'rf-test'
    assert saved['confusion_matrix'] == [[2, 0], [1, 1]]
    assert saved['top_shap_features'] == []
    assert (tmp_path / 'cm.png').exists()
