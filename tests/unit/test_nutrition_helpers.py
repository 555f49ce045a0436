import pytest

from app.entities.nutrition import NutritionTotals
from app.services.async_nutrition import bump_minor, per_serving, scale_totals


@pytest.mark.parametrize(
    "version, expected",
    [("1.0", "1.1"), ("1.9", "1.10"), ("2", "2.1"), ("1.2.3", "1.3.0")],
)
def test_bump_minor(version, expected):
    assert bump_minor(version) == expected


def test_scale_totals_rounds_each_field():
    totals = NutritionTotals(calories=525, protein=66.0, carbs=42, fats=7.5, sodium=148)

    scaled = scale_totals(totals, 1.5)

    assert scaled.calories == 788
    assert scaled.protein == 99.0
    assert scaled.carbs == 63
    assert scaled.fats == 11.25
    assert scaled.sodium == 222


def test_per_serving():
    totals = NutritionTotals(calories=900, protein=60, carbs=90, fats=30, sodium=300)

    serving = per_serving(totals, 3)

    assert serving.calories == 300
    assert serving.protein == 20
    assert serving.sodium == 100
