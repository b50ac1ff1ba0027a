import logging
from pathlib import Path

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler('churn_prediction.log'),
        logging.StreamHandler()
    ]
)

# File paths
BASE_DIR = Path(__file__).parent
DATA_DIR = BASE_DIR / 'data' / 'inputs'  # static files
POST_DIR = BASE_DIR / 'post'  # output directory

# Data configuration
DATA_FILE = 'customer_churn.csv'
SCORING_FILE = 'customers_to_score.csv'
ID_COL = 'customer_id'
TARGET_COL = 'churn_label'
POSITIVE_LABEL = 'Yes'
NEGATIVE_LABEL = 'No'

CATEGORY_VALUES = {
    'gender': ['Male', 'Female'],
    'state': [
        'AK', 'AL', 'AR', 'AZ', 'CA', 'CO', 'CT', 'DC', 'DE', 'FL', 'GA',
        'HI', 'IA', 'ID', 'IL', 'IN', 'KS', 'KY', 'LA', 'MA', 'MD', 'ME',
        'MI', 'MN', 'MO', 'MS', 'MT', 'NC', 'ND', 'NE', 'NH', 'NJ', 'NM',
        'NV', 'NY', 'OH', 'OK', 'OR', 'PA', 'RI', 'SC', 'SD', 'TN', 'TX',
        'UT', 'VA', 'VT', 'WA', 'WI', 'WV', 'WY'
    ],
    'contract_type': ['Month-to-Month', 'One-Year', 'Two-Year'],
    'payment_method': ['Credit Card', 'Mailed Check', 'Electronic Check', 'Bank Transfer'],
}

# (lower, upper, integer_only); None means unbounded
NUMERIC_BOUNDS = {
    'age': (0, 120, True),
    'tenure': (0, 1200, True),
    'monthly_charge': (0.0, None, False),
    'total_charges': (0.0, None, False),
}

REQUIRED_COLUMNS = [ID_COL] + list(CATEGORY_VALUES) + list(NUMERIC_BOUNDS)

# Cell values read as missing from CSV, never applied to customer_id
MISSING_VALUES = ['', 'NA', 'N/A', 'NaN', 'nan', 'null', 'NULL', 'None']

# Bucket thresholds: (label, lower inclusive, upper exclusive)
AGE_GROUP_BINS = [
    ('<30', None, 30),
    ('30-50', 30, 50),
    ('>50', 50, None),
]
MONTHLY_CHARGE_BINS = [
    ('<35', None, 35),
    ('35-70', 35, 70),
    ('70-100', 70, 100),
    ('>100', 100, None),
]

# Feature configuration
NUMERIC_FEATURES = ['age', 'tenure', 'monthly_charge', 'total_charges']
CATEGORICAL_FEATURES = list(CATEGORY_VALUES) + ['age_group', 'monthly_charge_range']
FEATURE_COLUMNS = NUMERIC_FEATURES + CATEGORICAL_FEATURES

# Model configuration
TEST_SIZE = 0.2
RANDOM_STATE = 42
N_ESTIMATORS = 100
N_JOBS = -1  # trees are fit in parallel, results do not depend on it
MIN_TRAINING_ROWS = 10
DECISION_THRESHOLD = 0.5
IMBALANCE_THRESHOLD = 0.10  # Use SMOTE if churn rate ≤ 10%
SMOTE_K_NEIGHBORS = 5
SHAP_TOP_N = 5  # Number of features reported by SHAP analysis
