"""Tests for filter composition and filtered search over the cars collection."""

import unittest
from datetime import date

from app.core.config import Settings
from app.schemas.filters import CarFilters
from app.services.cars import list_visible
from app.services.filters import (
    PREFIX_RANGE_END,
    InvalidFilterError,
    Predicate,
    compose_predicates,
    search_cars,
)
from tests.fakes import FakeFirestore, seed_car


def _settings() -> Settings:
    return Settings(_env_file=None)


class TestComposePredicates(unittest.TestCase):
    """compose_predicates maps filter fields to AND-ed Firestore predicates."""

    def test_empty_filters_only_require_visibility(self) -> None:
        preds = compose_predicates(CarFilters(), _settings())
        self.assertEqual(preds, [Predicate("isVisible", "==", True)])

    def test_any_and_empty_values_are_ignored(self) -> None:
        filters = CarFilters(brand="any", model="", fuel="  ", gearbox="ANY")
        preds = compose_predicates(filters, _settings())
        self.assertEqual(preds, [Predicate("isVisible", "==", True)])

    def test_equality_fields_use_document_field_names(self) -> None:
        filters = CarFilters(brand="Toyota", body_type="Sedan", drive_type="AWD")
        preds = compose_predicates(filters, _settings())
        self.assertIn(Predicate("brand", "==", "Toyota"), preds)
        self.assertIn(Predicate("bodyType", "==", "Sedan"), preds)
        self.assertIn(Predicate("driveType", "==", "AWD"), preds)
        self.assertEqual(preds[0], Predicate("isVisible", "==", True))

    def test_default_range_bounds_are_dropped(self) -> None:
        filters = CarFilters(
            min_price="0",
            max_price="100000",
            min_year="1990",
            max_year=str(date.today().year),
        )
        preds = compose_predicates(filters, _settings())
        self.assertEqual(len(preds), 1)

    def test_narrowed_bounds_become_range_predicates(self) -> None:
        filters = CarFilters(min_price="5000", max_price="20000", min_year="2015", max_year="2020")
        preds = compose_predicates(filters, _settings())
        self.assertIn(Predicate("price", ">=", 5000), preds)
        self.assertIn(Predicate("price", "<=", 20000), preds)
        self.assertIn(Predicate("year", ">=", 2015), preds)
        self.assertIn(Predicate("year", "<=", 2020), preds)

    def test_any_numeric_bounds_are_ignored(self) -> None:
        filters = CarFilters(min_price="any", max_price=" ", min_year="ANY", max_year="Any")
        preds = compose_predicates(filters, _settings())
        self.assertEqual(preds, [Predicate("isVisible", "==", True)])

    def test_non_integer_bound_raises(self) -> None:
        with self.assertRaises(InvalidFilterError) as ctx:
            compose_predicates(CarFilters(min_price="cheap"), _settings())
        self.assertIn("minPrice", ctx.exception.message)

    def test_query_is_model_prefix_range(self) -> None:
        preds = compose_predicates(CarFilters(query="Cam"), _settings())
        self.assertIn(Predicate("model", ">=", "Cam"), preds)
        self.assertIn(Predicate("model", "<=", "Cam" + PREFIX_RANGE_END), preds)

    def test_query_skipped_when_model_is_exact(self) -> None:
        preds = compose_predicates(CarFilters(model="Civic", query="Cam"), _settings())
        model_preds = [p for p in preds if p.field == "model"]
        self.assertEqual(model_preds, [Predicate("model", "==", "Civic")])


class TestSearchCars(unittest.TestCase):
    """search_cars runs the composed query against the cars collection."""

    def setUp(self) -> None:
        self.db = FakeFirestore()
        self.civic = seed_car(
            self.db, brand="Honda", model="Civic", year=2019, price=18000
        )
        self.camry = seed_car(self.db, brand="Toyota", model="Camry", year=2022, price=32000)
        self.hidden = seed_car(self.db, brand="Toyota", model="Corolla", year=2021, isVisible=False)

    def test_brand_and_min_year_select_only_matching_car(self) -> None:
        filters = CarFilters(brand="Toyota", min_year="2020")
        cars = search_cars(self.db, filters, _settings())
        self.assertEqual([c.id for c in cars], [self.camry])

    def test_default_filters_return_visible_newest_first(self) -> None:
        cars = search_cars(self.db, CarFilters(), _settings())
        self.assertEqual([c.id for c in cars], [self.camry, self.civic])

    def test_default_filters_match_plain_visible_listing(self) -> None:
        searched = search_cars(self.db, CarFilters(brand="", min_price="0"), _settings(), limit=10)
        self.assertEqual([c.id for c in searched], [c.id for c in list_visible(self.db, 10)])

    def test_any_brand_applies_no_brand_filter(self) -> None:
        cars = search_cars(self.db, CarFilters(brand="any"), _settings())
        self.assertEqual({c.id for c in cars}, {self.camry, self.civic})

    def test_hidden_listing_never_returned(self) -> None:
        cars = search_cars(self.db, CarFilters(brand="Toyota"), _settings())
        self.assertNotIn(self.hidden, [c.id for c in cars])

    def test_query_prefix_matches_model(self) -> None:
        cars = search_cars(self.db, CarFilters(query="Civ"), _settings())
        self.assertEqual([c.id for c in cars], [self.civic])

    def test_limit_caps_results(self) -> None:
        cars = search_cars(self.db, CarFilters(), _settings(), limit=1)
        self.assertEqual([c.id for c in cars], [self.camry])

    def test_price_range(self) -> None:
        cars = search_cars(self.db, CarFilters(max_price="20000"), _settings())
        self.assertEqual([c.id for c in cars], [self.civic])


if __name__ == "__main__":
    unittest.main()
