import pytest

from transaction_advisor.models import Category


@pytest.fixture
def categories() -> list[Category]:
    return [
        Category(id="food", name="Alimentação"),
        Category(id="transport", name="Transporte"),
        Category(id="housing", name="Moradia"),
        Category(id="health", name="Saúde"),
        Category(id="fun", name="Lazer"),
        Category(id="salary", name="Salário", transaction_type="income"),
    ]
