from __future__ import annotations

import random
import unittest
from typing import Dict, List

from app.data.models import ModelWeights, ScoredCandidate
from app.recommendation.blender import Blender, fallback_recommendations
from app.recommendation.context_filters import BudgetFilter
from tests.fakes import make_record


class _AlwaysAdmit(random.Random):
    def random(self) -> float:
        return 0.0


def _candidates(algorithm: str, scores: Dict[str, float]) -> List[ScoredCandidate]:
    return [ScoredCandidate(exp_id, score, algorithm, f"{algorithm} reason") for exp_id, score in scores.items()]


class BlenderTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.weights = ModelWeights(collaborative=0.4, content_based=0.4, popularity=0.2)
        self.records = {}

    def _blend(self, blender: Blender, lists, categories: Dict[str, str], filters=()):
        for exp_id, category in categories.items():
            self.records.setdefault(exp_id, make_record(exp_id, category=category))
        return blender.blend(
            lists,
            filters=filters,
            record_lookup=self.records.get,
            category_of=categories.get,
        )

    def test_weighted_scores_are_additive(self) -> None:
        blender = Blender(self.weights, diversity_weight=0.0)
        items = self._blend(
            blender,
            [_candidates("collaborative", {"x": 0.5}), _candidates("popularity", {"x": 2.0, "y": 1.0})],
            {"x": "museum", "y": "park"},
        )
        by_id = {i.experience_id: i for i in items}
        self.assertAlmostEqual(by_id["x"].blended_score, 0.5 * 0.4 + 2.0 * 0.2)
        self.assertEqual(by_id["x"].contributing_algorithms, ["popularity", "collaborative"])
        self.assertEqual(by_id["x"].algorithm_scores, {"collaborative": 0.5, "popularity": 2.0})
        self.assertEqual(by_id["x"].explanation, "popularity reason")
        self.assertEqual([i.experience_id for i in items], ["x", "y"])

    def test_confidence_is_clamped(self) -> None:
        blender = Blender(self.weights, diversity_weight=0.0)
        items = self._blend(blender, [_candidates("popularity", {"x": 50.0})], {"x": "museum"})
        self.assertEqual(items[0].confidence, 1.0)
        self.assertAlmostEqual(items[0].blended_score, 10.0)

    def test_strict_category_cap_when_diversity_weight_zero(self) -> None:
        blender = Blender(self.weights, max_recommendations=8, diversity_weight=0.0)
        scores = {f"m{i:02d}": 1.0 - i * 0.01 for i in range(12)}
        scores.update({f"p{i:02d}": 0.5 - i * 0.01 for i in range(12)})
        categories = {k: ("museum" if k.startswith("m") else "park") for k in scores}

        items = self._blend(blender, [_candidates("content_based", scores)], categories)

        self.assertEqual(blender.max_per_category, 2)
        self.assertEqual([i.experience_id for i in items], ["m00", "m01", "p00", "p01"])

    def test_output_never_exceeds_max(self) -> None:
        blender = Blender(self.weights, max_recommendations=5, rng=_AlwaysAdmit())
        scores = {f"e{i:02d}": 1.0 - i * 0.01 for i in range(30)}
        items = self._blend(blender, [_candidates("popularity", scores)], {k: "museum" for k in scores})
        self.assertEqual(len(items), 5)

    def test_over_cap_items_admitted_by_rng(self) -> None:
        blender = Blender(self.weights, max_recommendations=4, diversity_weight=0.2, rng=_AlwaysAdmit())
        scores = {"a": 0.9, "b": 0.8, "c": 0.7}
        items = self._blend(blender, [_candidates("content_based", scores)], {k: "museum" for k in scores})
        self.assertEqual([i.experience_id for i in items], ["a", "b", "c"])

    def test_ties_broken_by_id(self) -> None:
        blender = Blender(self.weights, diversity_weight=0.0)
        items = self._blend(
            blender,
            [_candidates("content_based", {"b": 0.5, "a": 0.5})],
            {"a": "museum", "b": "park"},
        )
        self.assertEqual([i.experience_id for i in items], ["a", "b"])

    def test_unknown_category_is_dropped(self) -> None:
        blender = Blender(self.weights, diversity_weight=0.0)
        items = self._blend(
            blender,
            [_candidates("content_based", {"known": 0.5, "ghost": 0.9})],
            {"known": "museum"},
        )
        self.assertEqual([i.experience_id for i in items], ["known"])

    def test_context_filters_applied(self) -> None:
        blender = Blender(self.weights, diversity_weight=0.0)
        self.records["cheap"] = make_record("cheap", category="museum", price=5)
        self.records["pricey"] = make_record("pricey", category="park", price=500)
        items = self._blend(
            blender,
            [_candidates("popularity", {"cheap": 1.0, "pricey": 2.0})],
            {"cheap": "museum", "pricey": "park"},
            filters=[BudgetFilter(50)],
        )
        self.assertEqual([i.experience_id for i in items], ["cheap"])

    def test_empty_result_returns_fallback(self) -> None:
        blender = Blender(self.weights)
        items = self._blend(blender, [[], [], []], {})
        self.assertEqual(
            [(i.experience_id, i.blended_score) for i in items],
            [("griffith-observatory", 0.9), ("kennedy-space-center", 0.85), ("smithsonian-air-space", 0.8)],
        )
        self.assertTrue(all(i.contributing_algorithms == ["fallback"] for i in items))
        self.assertEqual(
            [i.experience_id for i in items],
            [i.experience_id for i in fallback_recommendations()],
        )


if __name__ == "__main__":
    unittest.main()
