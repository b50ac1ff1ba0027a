import pytest
import numpy as np
from churn_model.config import CATEGORY_VALUES
from churn_model.prep.validation import SchemaValidator
from churn_model.prep.dataprep import FeatureEngineer


def generate_customers(n, seed=0, with_labels=True):
    """
    Synthetic customers with a planted churn rule:
    month-to-month contracts with tenure < 6 churn, everyone else stays.
    """
    rng = np.random.default_rng(seed)
    contracts = rng.choice(CATEGORY_VALUES['contract_type'], size=n, p=[0.5, 0.25, 0.25])
    tenure = rng.integers(0, 24, size=n)
    monthly = np.round(rng.uniform(20, 130, size=n), 2)

    records = []
    for i in range(n):
        record = {
            'customer_id': f"C{seed:02d}-{i:05d}",
            'gender': str(rng.choice(CATEGORY_VALUES['gender'])),
            'age': int(rng.integers(18, 80)),
            'state': str(rng.choice(['CA', 'NY', 'TX', 'WA', 'FL'])),
            'tenure': int(tenure[i]),
            'contract_type': str(contracts[i]),
            'payment_method': str(rng.choice(CATEGORY_VALUES['payment_method'])),
            'monthly_charge': float(monthly[i]),
            'total_charges': float(np.round(monthly[i] * tenure[i], 2)),
        }
        if with_labels:
            churned = contracts[i] == 'Month-to-Month' and tenure[i] < 6
            record['churn_label'] = 'Yes' if churned else 'No'
        records.append(record)
    return records


@pytest.fixture
def make_customers():
    return generate_customers


@pytest.fixture
def customers():
    return generate_customers(200, seed=1)


@pytest.fixture
def training_batch(customers):
    return SchemaValidator().validate(customers)


@pytest.fixture
def engineered(training_batch):
    # (features, labels, encoding)
    return FeatureEngineer().fit_transform(training_batch)
