class ChurnModelError(Exception):
    """Base class for every error raised by the churn pipeline"""


class SchemaError(ChurnModelError):
    """
    Raised when a customer batch does not match the expected schema.

    Attributes:
        errors: list of (row_index, field, reason) tuples, one per problem.
            row_index is None for batch-level problems such as a missing column.
    """

    def __init__(self, errors):
        self.errors = list(errors)
        super().__init__(self._format())

    @property
    def row_indices(self):
        return sorted({row for row, _, _ in self.errors if row is not None})

    def _format(self):
        lines = [f"{len(self.errors)} schema error(s) in batch:"]
        for row, field, reason in self.errors:
            where = 'batch' if row is None else f"row {row}"
            lines.append(f" - {where}, field '{field}': {reason}")
        return '\n'.join(lines)


class UnknownCategoryError(ChurnModelError):
    """Raised when a category value was not seen when the encoding was fitted"""

    def __init__(self, unknown):
        # unknown: list of (field, value) pairs
        self.unknown = list(unknown)
        self.field, self.value = self.unknown[0]
        details = ', '.join(f"{field}={value!r}" for field, value in self.unknown)
        super().__init__(f"Unknown category value(s) not present in the fitted encoding: {details}")


class InvalidSplitError(ChurnModelError):
    """Raised when a split configuration leaves a partition empty"""


class InsufficientDataError(ChurnModelError):
    """Raised when a training set is too small or holds a single class"""


class FeatureMismatchError(ChurnModelError):
    """Raised when a feature matrix does not match the trained feature ordering"""

    def __init__(self, expected, received):
        self.expected = list(expected)
        self.received = list(received)
        super().__init__(f"Feature columns {self.received} do not match trained features {self.expected}")
