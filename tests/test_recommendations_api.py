from __future__ import annotations

import random
import unittest

from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.api.deps import get_recommendation_service
from app.api.v1.endpoints import recommendations as recommendation_endpoints
from app.data.catalog import InMemoryCatalog
from app.data.demo_catalog import demo_experiences
from app.services.recommendation_service import RecommendationService

LOS_ANGELES = {"lat": 34.0522, "lon": -118.2437}


class RecommendationsApiTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self._catalog = InMemoryCatalog(demo_experiences())
        self._service = RecommendationService(self._catalog, rng=random.Random(1))

        app = FastAPI()
        app.include_router(recommendation_endpoints.router, prefix="/api/v1/recommendations")
        app.dependency_overrides[get_recommendation_service] = lambda: self._service
        self._client = TestClient(app)

    def tearDown(self) -> None:
        self._client.close()

    def test_recommendations_for_new_user(self) -> None:
        r = self._client.get("/api/v1/recommendations/newbie")
        self.assertEqual(r.status_code, 200, r.text)

        body = r.json()
        self.assertEqual(body["user_id"], "newbie")
        self.assertEqual(body["count"], len(body["recommendations"]))
        self.assertGreater(body["count"], 0)
        self.assertEqual(body["recommendations"][0]["experience_id"], "smithsonian-air-space")
        self.assertTrue(all(item["algorithms"] == ["popularity"] for item in body["recommendations"]))

    def test_radius_and_budget_filters(self) -> None:
        r = self._client.get("/api/v1/recommendations/newbie", params={**LOS_ANGELES, "radius": 50})
        self.assertEqual(r.status_code, 200, r.text)
        ids = {item["experience_id"] for item in r.json()["recommendations"]}
        self.assertEqual(ids, {"griffith-observatory", "california-science-center"})

        r = self._client.get("/api/v1/recommendations/newbie", params={"budget": 0})
        ids = {item["experience_id"] for item in r.json()["recommendations"]}
        self.assertEqual(ids, {"griffith-observatory", "smithsonian-air-space", "california-science-center"})

    def test_invalid_query_params_rejected(self) -> None:
        r = self._client.get("/api/v1/recommendations/newbie", params={"lat": 200, "lon": 0})
        self.assertEqual(r.status_code, 422, r.text)

    def test_record_interaction(self) -> None:
        r = self._client.post(
            "/api/v1/recommendations/interactions",
            json={"user_id": "u1", "experience_id": "lowell-observatory", "interaction_type": "book"},
        )
        self.assertEqual(r.status_code, 200, r.text)
        self.assertEqual(r.json()["interaction_count"], 1)
        self.assertAlmostEqual(r.json()["preference_score"], 0.08)

    def test_unknown_interaction_type_is_422(self) -> None:
        r = self._client.post(
            "/api/v1/recommendations/interactions",
            json={"user_id": "u1", "experience_id": "lowell-observatory", "interaction_type": "teleport"},
        )
        self.assertEqual(r.status_code, 422, r.text)

    def test_rating(self) -> None:
        r = self._client.post(
            "/api/v1/recommendations/ratings",
            json={"user_id": "u1", "experience_id": "mojave-air-space-port-tour", "rating": 7},
        )
        self.assertEqual(r.status_code, 422, r.text)

        r = self._client.post(
            "/api/v1/recommendations/ratings",
            json={"user_id": "u1", "experience_id": "mojave-air-space-port-tour", "rating": 5, "review": "fun"},
        )
        self.assertEqual(r.status_code, 200, r.text)
        self.assertEqual(self._catalog.get_experience("mojave-air-space-port-tour").review_count, 96)

    def test_personalization(self) -> None:
        for exp_id in ("griffith-observatory", "lowell-observatory"):
            r = self._client.post(
                "/api/v1/recommendations/interactions",
                json={"user_id": "u1", "experience_id": exp_id, "interaction_type": "save"},
            )
            self.assertEqual(r.status_code, 200, r.text)

        r = self._client.get("/api/v1/recommendations/u1/personalization")
        self.assertEqual(r.status_code, 200, r.text)
        body = r.json()
        self.assertEqual(body["data_points"], 2)
        self.assertEqual(body["top_category"], "observatory")
        self.assertEqual(body["description"], "Getting to know you")
        self.assertEqual(body["interaction_breakdown"], {"save": 2})


class _UnavailableCatalog(InMemoryCatalog):
    def get_all_experiences(self):
        raise ConnectionError("catalog unavailable")


class EngineUnavailableApiTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self._service = RecommendationService(_UnavailableCatalog(), rng=random.Random(1))

        app = FastAPI()
        app.include_router(recommendation_endpoints.router, prefix="/api/v1/recommendations")
        app.dependency_overrides[get_recommendation_service] = lambda: self._service
        self._client = TestClient(app)

    def tearDown(self) -> None:
        self._client.close()

    def test_writes_return_503(self) -> None:
        r = self._client.post(
            "/api/v1/recommendations/interactions",
            json={"user_id": "u1", "experience_id": "lowell-observatory", "interaction_type": "book"},
        )
        self.assertEqual(r.status_code, 503, r.text)

        r = self._client.post(
            "/api/v1/recommendations/ratings",
            json={"user_id": "u1", "experience_id": "lowell-observatory", "rating": 5},
        )
        self.assertEqual(r.status_code, 503, r.text)

    def test_personalization_returns_503(self) -> None:
        r = self._client.get("/api/v1/recommendations/u1/personalization")
        self.assertEqual(r.status_code, 503, r.text)

    def test_recommendations_still_fall_back(self) -> None:
        r = self._client.get("/api/v1/recommendations/u1")
        self.assertEqual(r.status_code, 200, r.text)
        self.assertEqual(r.json()["recommendations"][0]["algorithms"], ["fallback"])


class HealthCheckTestCase(unittest.TestCase):
    def test_root(self) -> None:
        from app.main import app

        client = TestClient(app)
        r = client.get("/")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["status"], "ok")
        client.close()


if __name__ == "__main__":
    unittest.main()
