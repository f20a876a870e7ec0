"""Route tests for /api/cars with in-memory Firestore and mocked S3."""

import unittest
from unittest.mock import MagicMock, patch

from google.api_core.exceptions import ServiceUnavailable

from app.core.config import settings
from tests.fakes import (
    FakeFirestore,
    bearer,
    car_document,
    image_url,
    make_client,
    make_identity,
    make_storage,
    seed_car,
    seed_user,
)

TOKENS = {"tok-owner": "owner-1", "tok-other": "other-1", "tok-admin": "admin-1"}


def _create_body(**overrides) -> dict:
    body = car_document(images=[image_url("new.jpg")])
    for key in ("userId", "isVisible", "createdAt"):
        body.pop(key)
    body.update(overrides)
    return body


class CarsApiTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.db = FakeFirestore()
        seed_user(self.db, "owner-1")
        seed_user(self.db, "other-1")
        seed_user(self.db, "admin-1", role="admin")
        self.s3 = MagicMock()
        self.client, self.app = make_client(
            self.db, identity=make_identity(TOKENS), storage=make_storage(self.s3)
        )


class TestListCars(CarsApiTestCase):
    """GET /api/cars returns visible listings, filtered and paginated."""

    def test_filtered_browse(self) -> None:
        camry = seed_car(self.db, brand="Toyota", model="Camry", year=2022)
        seed_car(self.db, brand="Honda", model="Civic", year=2019)
        response = self.client.get("/api/cars", params={"brand": "Toyota", "minYear": "2020"})
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual([c["id"] for c in body["cars"]], [camry])
        self.assertEqual(body["pagination"]["total"], 1)

    def test_pagination(self) -> None:
        ids = [seed_car(self.db, model=f"Model{i}") for i in range(5)]
        response = self.client.get("/api/cars", params={"limit": 2, "page": 2})
        body = response.json()
        newest_first = list(reversed(ids))
        self.assertEqual([c["id"] for c in body["cars"]], newest_first[2:4])
        self.assertEqual(
            body["pagination"], {"total": 5, "page": 2, "limit": 2, "totalPages": 3}
        )

    def test_hidden_listing_not_listed(self) -> None:
        seed_car(self.db, isVisible=False)
        body = self.client.get("/api/cars").json()
        self.assertEqual(body["cars"], [])
        self.assertEqual(body["pagination"]["totalPages"], 0)

    def test_any_numeric_bound_applies_no_filter(self) -> None:
        car_id = seed_car(self.db)
        response = self.client.get("/api/cars", params={"minPrice": "any", "maxYear": "Any"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual([c["id"] for c in response.json()["cars"]], [car_id])

    def test_search_results_are_capped(self) -> None:
        ids = [seed_car(self.db, model=f"Model{i}") for i in range(5)]
        with patch.object(settings, "CARS_SEARCH_MAX_RESULTS", 3):
            body = self.client.get("/api/cars", params={"limit": 10}).json()
        self.assertEqual([c["id"] for c in body["cars"]], list(reversed(ids))[:3])
        self.assertEqual(body["pagination"]["total"], 3)
        self.assertEqual(body["pagination"]["totalPages"], 1)

    def test_invalid_bound_is_422(self) -> None:
        response = self.client.get("/api/cars", params={"minPrice": "abc"})
        self.assertEqual(response.status_code, 422)

    def test_firestore_failure_is_500(self) -> None:
        broken = MagicMock()
        broken.collection.side_effect = ServiceUnavailable("down")
        client, _ = make_client(broken)
        response = client.get("/api/cars")
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"detail": "Database request failed"})


class TestCreateAndRead(CarsApiTestCase):
    def test_create_requires_auth(self) -> None:
        response = self.client.post("/api/cars", json=_create_body())
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.headers["www-authenticate"], "Bearer")

    def test_invalid_token_is_401(self) -> None:
        response = self.client.post("/api/cars", json=_create_body(), headers=bearer("forged"))
        self.assertEqual(response.status_code, 401)

    def test_create_sets_owner_and_visibility(self) -> None:
        response = self.client.post(
            "/api/cars", json=_create_body(userId="someone-else"), headers=bearer("tok-owner")
        )
        self.assertEqual(response.status_code, 201)
        doc = self.db.docs("cars")[response.json()["id"]]
        self.assertEqual(doc["userId"], "owner-1")
        self.assertTrue(doc["isVisible"])
        self.assertIn("createdAt", doc)

    def test_create_without_images_is_422(self) -> None:
        response = self.client.post(
            "/api/cars", json=_create_body(images=[]), headers=bearer("tok-owner")
        )
        self.assertEqual(response.status_code, 422)
        self.assertEqual(self.db.docs("cars"), {})

    def test_get_car_and_404(self) -> None:
        car_id = seed_car(self.db)
        response = self.client.get(f"/api/cars/{car_id}")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["bodyType"], "Sedan")
        self.assertEqual(self.client.get("/api/cars/missing").status_code, 404)

    def test_compare(self) -> None:
        a = seed_car(self.db, model="Camry")
        b = seed_car(self.db, model="Civic")
        response = self.client.get("/api/cars/compare", params={"ids": f"{a},{b}"})
        self.assertEqual([c["id"] for c in response.json()["cars"]], [a, b])
        too_many = self.client.get("/api/cars/compare", params={"ids": f"{a},{b},x"})
        self.assertEqual(too_many.status_code, 422)


class TestMutations(CarsApiTestCase):
    """Only the owner or an admin may edit, hide or delete a listing."""

    def setUp(self) -> None:
        super().setUp()
        self.images = [image_url("one.jpg"), image_url("two.jpg"), image_url("three.jpg")]
        self.car_id = seed_car(self.db, images=self.images)

    def test_non_owner_edit_is_403_without_mutation(self) -> None:
        before = dict(self.db.docs("cars")[self.car_id])
        response = self.client.put(
            f"/api/cars/{self.car_id}", json={"price": 1}, headers=bearer("tok-other")
        )
        self.assertEqual(response.status_code, 403)
        self.assertEqual(self.db.docs("cars")[self.car_id], before)
        self.s3.delete_object.assert_not_called()

    def test_owner_edit_keeps_owner_and_created_at(self) -> None:
        before = dict(self.db.docs("cars")[self.car_id])
        response = self.client.put(
            f"/api/cars/{self.car_id}",
            json={"price": 29999, "images": self.images[:2]},
            headers=bearer("tok-owner"),
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["price"], 29999)
        doc = self.db.docs("cars")[self.car_id]
        self.assertEqual(doc["userId"], before["userId"])
        self.assertEqual(doc["createdAt"], before["createdAt"])
        self.s3.delete_object.assert_called_once_with(
            Bucket="test-bucket", Key="car-images/three.jpg"
        )

    def test_admin_can_hide_listing(self) -> None:
        response = self.client.patch(
            f"/api/cars/{self.car_id}/visibility",
            json={"isVisible": False},
            headers=bearer("tok-admin"),
        )
        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.json()["isVisible"])
        self.assertEqual(self.client.get("/api/cars").json()["cars"], [])

    def test_non_owner_delete_is_403(self) -> None:
        response = self.client.delete(f"/api/cars/{self.car_id}", headers=bearer("tok-other"))
        self.assertEqual(response.status_code, 403)
        self.assertIn(self.car_id, self.db.docs("cars"))

    def test_delete_removes_document_favorites_and_each_image(self) -> None:
        self.db.collection("favorites").document(f"other-1_{self.car_id}").set(
            {"userId": "other-1", "carId": self.car_id}
        )
        response = self.client.delete(f"/api/cars/{self.car_id}", headers=bearer("tok-owner"))
        self.assertEqual(response.status_code, 204)
        self.assertNotIn(self.car_id, self.db.docs("cars"))
        self.assertEqual(self.db.docs("favorites"), {})
        self.assertEqual(self.s3.delete_object.call_count, len(self.images))
        deleted_keys = [c.kwargs["Key"] for c in self.s3.delete_object.call_args_list]
        self.assertEqual(
            deleted_keys, ["car-images/one.jpg", "car-images/two.jpg", "car-images/three.jpg"]
        )

    def test_failed_favorites_cleanup_keeps_document_for_retry(self) -> None:
        with patch(
            "app.services.cars.remove_car_favorites", side_effect=ServiceUnavailable("down")
        ):
            response = self.client.delete(f"/api/cars/{self.car_id}", headers=bearer("tok-owner"))
        self.assertEqual(response.status_code, 500)
        self.assertEqual(self.s3.delete_object.call_count, len(self.images))
        self.assertIn(self.car_id, self.db.docs("cars"))

        retry = self.client.delete(f"/api/cars/{self.car_id}", headers=bearer("tok-owner"))
        self.assertEqual(retry.status_code, 204)
        self.assertNotIn(self.car_id, self.db.docs("cars"))

    def test_delete_missing_is_404(self) -> None:
        response = self.client.delete("/api/cars/missing", headers=bearer("tok-owner"))
        self.assertEqual(response.status_code, 404)


if __name__ == "__main__":
    unittest.main()
