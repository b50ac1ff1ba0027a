from churn_model.config import (logging, POST_DIR, DATA_DIR, SCORING_FILE,
                                TEST_SIZE, RANDOM_STATE, N_ESTIMATORS)
from churn_model.prep.datasource import DataSource
from churn_model.prep.validation import SchemaValidator
from churn_model.prep.dataprep import FeatureEngineer
from churn_model.prep.split import DatasetSplitter
from churn_model.model.model import ChurnClassifier
from churn_model.model.evaluation import Evaluator
from churn_model.model.scoring import Scorer


def main():
    logging.info("Starting churn prediction pipeline")
    POST_DIR.mkdir(parents=True, exist_ok=True)

    # 1. Load and validate data
    orig_df = DataSource.load_data()
    batch = SchemaValidator().validate(orig_df)

    # 2. Engineer features and split
    features, labels, encoding = FeatureEngineer().fit_transform(batch)
    splitter = DatasetSplitter(test_size=TEST_SIZE, seed=RANDOM_STATE)
    split = splitter.split(features, labels)
    x_train, y_train = splitter.rebalance(split.x_train, split.y_train, encoding)

    # 3. Train
    classifier = ChurnClassifier()
    model = classifier.fit(x_train, y_train, encoding, n_estimators=N_ESTIMATORS, seed=RANDOM_STATE)

    # 4. Evaluate on the held-out split
    evaluator = Evaluator(classifier)
    report = evaluator.evaluate(model, split.x_eval, split.y_eval)
    extras = {}

    # 5. SHAP analysis (optional)
    try:
        shap_results = classifier.analyze_shap(model, split.x_eval)
        extras['top_shap_features'] = shap_results.to_dict('records')
    except Exception as e:
        logging.warning(f"SHAP skipped: {str(e)}")

    # 6. Save outputs
    classifier.save_model(model, POST_DIR / 'churn_model.pkl')
    encoding.save(POST_DIR / 'category_encoding.json')
    evaluator.save_report(report, POST_DIR / 'metrics.json', **extras)
    evaluator.plot_confusion_matrix(report, POST_DIR / 'confusion_matrix.png')

    # 7. Score customers awaiting a prediction
    scoring_path = DATA_DIR / SCORING_FILE
    if scoring_path.exists():
        scores = Scorer(classifier=classifier).score(model, DataSource.load_data(scoring_path))
        DataSource.save_scores(scores, POST_DIR / 'churn_scores.csv')
    else:
        logging.info(f"No scoring batch found at {scoring_path}")

    logging.info("Pipeline completed successfully")


if __name__ == "__main__":
    main()
