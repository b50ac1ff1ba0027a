import logging
import pandas as pd
from churn_model.config import ID_COL, POSITIVE_LABEL, NEGATIVE_LABEL, DECISION_THRESHOLD
from churn_model.prep.validation import SchemaValidator
from churn_model.prep.dataprep import FeatureEngineer
from churn_model.model.model import ChurnClassifier


class Scorer:
    """Applies a trained model to new customers and builds the scoring table"""

    def __init__(self, validator=None, engineer=None, classifier=None):
        self.validator = validator or SchemaValidator()
        self.engineer = engineer or FeatureEngineer()
        self.classifier = classifier or ChurnClassifier()

    def score(self, model, records, sort_by_risk=False):
        """
        Args:
            model: TrainedModel
            records: raw customer batch, churn_label optional
            sort_by_risk: order rows by descending churn probability instead of input order
        Returns:
            DataFrame with customer_id, churn_probability, predicted_label
        """
        batch = self.validator.validate(records, require_label=False)
        features = self.engineer.transform(batch, model.encoding)
        probabilities = self.classifier.predict_probability(model, features)

        scores = pd.DataFrame({
            ID_COL: batch[ID_COL].to_numpy(),
            'churn_probability': probabilities,
            'predicted_label': [POSITIVE_LABEL if p >= DECISION_THRESHOLD else NEGATIVE_LABEL
                                for p in probabilities]
        })
        if sort_by_risk:
            scores = scores.sort_values('churn_probability', ascending=False,
                                        kind='stable').reset_index(drop=True)

        logging.info(f"Scored {len(scores)} customers with {model.model_version}: "
                     f"{(scores['predicted_label'] == POSITIVE_LABEL).sum()} predicted to churn")
        return scores
