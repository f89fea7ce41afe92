import pytest

from mktocli.core.steps.base_step import UnknownOperatorError, compare_values


@pytest.mark.parametrize("operator, actual, expected, outcome", [
    ("be", "Ada", "Ada", True),
    ("be", 10, "10.0", True),
    ("be", True, "true", True),
    ("be", None, "", True),
    ("not be", "Ada", "Grace", True),
    ("not be", 3, "3", False),
    ("contain", "ACME Corp", "ACME", True),
    ("not contain", "ACME Corp", "Initech", True),
    ("be greater than", "11", 10, True),
    ("be less than", 2.5, "3", True),
    ("be less than", 5, "3", False),
])
def test_compare_values(operator, actual, expected, outcome):
    assert compare_values(operator, actual, expected) is outcome


def test_ordering_needs_numbers():
    with pytest.raises(ValueError):
        compare_values("be greater than", "tall", 3)


def test_unknown_operator():
    with pytest.raises(UnknownOperatorError):
        compare_values("equal", 1, 1)
