import pytest
import pandas as pd
from churn_model.prep.datasource import DataSource
from churn_model.prep.validation import SchemaValidator
from churn_model.prep.dataprep import FeatureEngineer
from churn_model.prep.split import DatasetSplitter
from churn_model.model.model import ChurnClassifier
from churn_model.model.evaluation import Evaluator
from churn_model.model.scoring import Scorer
from churn_model.exceptions import SchemaError


@pytest.fixture
def sample_data(make_customers):
    # 1000 customers, month-to-month with tenure < 6 churn
    return pd.DataFrame(make_customers(1000, seed=42))


def train_and_evaluate(df, seed=42):
    batch = SchemaValidator().validate(df)
    features, labels, encoding = FeatureEngineer().fit_transform(batch)
    split = DatasetSplitter(test_size=0.2, seed=seed).split(features, labels)
    classifier = ChurnClassifier()
    model = classifier.fit(split.x_train, split.y_train, encoding, n_estimators=100, seed=seed)
    report = Evaluator(classifier).evaluate(model, split.x_eval, split.y_eval)
    return model, split, report


def test_data_loading(tmp_path, sample_data):
    # Save sample data to temp file
    file_path = tmp_path / "test_data.csv"
    sample_data.to_csv(file_path, index=False)

    df = DataSource.load_data(file_path)
    assert df.shape == sample_data.shape
    assert 'churn_label' in df.columns

    batch = SchemaValidator().validate(df)
    assert batch['customer_id'].tolist() == sample_data['customer_id'].tolist()


def test_planted_rule_is_learned(sample_data):
    model, split, report = train_and_evaluate(sample_data)

    assert len(split.y_train) == 800
    assert report.n_samples == 200
    assert report.precision >= 0.9
    assert report.recall >= 0.9


def test_pipeline_is_reproducible(sample_data):
    first_model, first_split, first_report = train_and_evaluate(sample_data)
    second_model, second_split, second_report = train_and_evaluate(sample_data)

    assert first_split.eval_index == second_split.eval_index
    assert first_model.model_version == second_model.model_version
    assert first_report == second_report


def test_invalid_age_stops_training(sample_data):
    sample_data.loc[17, 'age'] = -5

    with pytest.raises(SchemaError) as exc_info:
        train_and_evaluate(sample_data)

    assert (17, 'age') in [(row, field) for row, field, _ in exc_info.value.errors]


def test_scoring_output_saved(tmp_path, sample_data, make_customers):
    model, _, _ = train_and_evaluate(sample_data)
    new_customers = make_customers(50, seed=99, with_labels=False)

    scores = Scorer().score(model, new_customers)
    scores_path = tmp_path / "scores.csv"
    DataSource.save_scores(scores, scores_path)

    saved = pd.read_csv(scores_path, dtype={'customer_id': str})
    assert saved['customer_id'].tolist() == [c['customer_id'] for c in new_customers]
    assert set(saved['predicted_label']) <= {'Yes', 'No'}


def test_na_like_customer_ids_survive_loading(tmp_path, sample_data):
    sample_data.loc[0, 'customer_id'] = 'NA'
    sample_data.loc[1, 'customer_id'] = 'null'
    sample_data.loc[2, 'churn_label'] = None
    file_path = tmp_path / "test_data.csv"
    sample_data.to_csv(file_path, index=False)

    df = DataSource.load_data(file_path)
    batch = SchemaValidator().validate(df, require_label=False)

    assert batch['customer_id'].tolist()[:2] == ['NA', 'null']
    assert batch['churn_label'].isna().tolist()[:3] == [False, False, True]
