import json
import logging
from dataclasses import dataclass, asdict
from typing import Optional
import numpy as np
import matplotlib.pyplot as plt
import seaborn as sns
from sklearn.metrics import confusion_matrix, roc_auc_score
from churn_model.model.model import ChurnClassifier


def safe_ratio(numerator, denominator):
    """numerator / denominator, 0.0 when the denominator is 0"""
    return float(numerator) / denominator if denominator else 0.0


def f1(precision, recall):
    return safe_ratio(2 * precision * recall, precision + recall)


@dataclass(frozen=True)
class EvaluationReport:
    model_version: str
    seed: int
    n_samples: int
    true_positive: int
    false_positive: int
    true_negative: int
    false_negative: int
    precision: float
    recall: float
    f1: float
    accuracy: float
    roc_auc: Optional[float]  # None when the labels hold a single class
    per_class: dict

    @property
    def confusion_matrix(self):
        """[[TN, FP], [FN, TP]], rows = actual, columns = predicted"""
        return [[self.true_negative, self.false_positive],
                [self.false_negative, self.true_positive]]

    def to_dict(self):
        report = asdict(self)
        report['confusion_matrix'] = self.confusion_matrix
        return report


class Evaluator:
    def __init__(self, classifier=None):
        self.classifier = classifier or ChurnClassifier()

    def evaluate(self, model, x_eval, y_eval):
        """Evaluate a trained model on held-out data, churn (1) is the positive class"""
        y_true = np.asarray(y_eval).astype(int)
        y_pred = self.classifier.predict(model, x_eval)
        tn, fp, fn, tp = (int(v) for v in confusion_matrix(y_true, y_pred, labels=[0, 1]).ravel())

        per_class = {}
        for name, hits, false_alarms, misses in (('No', tn, fn, fp), ('Yes', tp, fp, fn)):
            precision = safe_ratio(hits, hits + false_alarms)
            recall = safe_ratio(hits, hits + misses)
            per_class[name] = {
                'precision': precision,
                'recall': recall,
                'f1': f1(precision, recall),
                'support': hits + misses
            }

        roc_auc = None
        if len(np.unique(y_true)) == 2:
            roc_auc = float(roc_auc_score(y_true, self.classifier.predict_probability(model, x_eval)))

        report = EvaluationReport(
            model_version=model.model_version,
            seed=model.seed,
            n_samples=len(y_true),
            true_positive=tp,
            false_positive=fp,
            true_negative=tn,
            false_negative=fn,
            precision=per_class['Yes']['precision'],
            recall=per_class['Yes']['recall'],
            f1=per_class['Yes']['f1'],
            accuracy=safe_ratio(tp + tn, len(y_true)),
            roc_auc=roc_auc,
            per_class=per_class
        )
        logging.info(f"Evaluation of {model.model_version}: precision={report.precision:.4f} "
                     f"recall={report.recall:.4f} f1={report.f1:.4f}")
        return report

    @staticmethod
    def save_report(report, path, **extras):
        """Save evaluation metrics, extras (e.g. SHAP features) are stored alongside"""
        with open(path, 'w') as f:
            json.dump({**report.to_dict(), **extras}, f, indent=4)
        logging.info(f"Metrics saved to {path}")

    @staticmethod
    def plot_confusion_matrix(report, path):
        plt.figure(figsize=(6, 5))
        sns.heatmap(np.array(report.confusion_matrix), annot=True, fmt='d', cmap='Blues',
                    xticklabels=['No', 'Yes'], yticklabels=['No', 'Yes'])
        plt.xlabel('Predicted churn')
        plt.ylabel('Actual churn')
        plt.title(f"Confusion Matrix ({report.model_version})")
        plt.savefig(path, bbox_inches='tight')
        plt.close()
        logging.info(f"Saved confusion matrix plot to {path}")
