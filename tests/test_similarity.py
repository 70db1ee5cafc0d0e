from __future__ import annotations

import unittest

from app.data.models import ExplicitPreferences, Location, UserProfile
from app.recommendation.feature_index import FeatureIndex, price_tier, region_of
from app.recommendation.similarity import (
    FeaturePreferences,
    accessibility_match,
    extract_feature_preferences,
    feature_similarity,
    find_similar_users,
    pearson_correlation,
    user_similarity,
)
from tests.fakes import make_record


class FeatureIndexTestCase(unittest.TestCase):
    def test_price_tiers(self) -> None:
        self.assertEqual(price_tier(0), "free")
        self.assertEqual(price_tier(19.99), "low")
        self.assertEqual(price_tier(20), "medium")
        self.assertEqual(price_tier(49.5), "medium")
        self.assertEqual(price_tier(50), "high")

    def test_region_prefers_state_then_country(self) -> None:
        self.assertEqual(region_of(Location(state="CA", country="US")), "CA")
        self.assertEqual(region_of(Location(country="JP")), "JP")
        self.assertEqual(region_of(Location()), "unknown")
        self.assertEqual(region_of(None), "unknown")

    def test_build_replaces_index(self) -> None:
        index = FeatureIndex()
        index.build([make_record("a"), make_record("b")])
        self.assertEqual(len(index), 2)

        index.build([make_record("c", price=0)])
        self.assertEqual(index.ids(), ["c"])
        self.assertNotIn("a", index)
        self.assertEqual(index.get("c").price_tier, "free")


class PearsonTestCase(unittest.TestCase):
    def test_empty_is_zero(self) -> None:
        self.assertEqual(pearson_correlation([], []), 0.0)

    def test_perfect_and_inverse_correlation(self) -> None:
        self.assertAlmostEqual(pearson_correlation([0.1, 0.5, 0.9], [0.2, 0.6, 1.0]), 1.0)
        self.assertAlmostEqual(pearson_correlation([0.1, 0.5, 0.9], [0.9, 0.5, 0.1]), -1.0)

    def test_zero_variance_different_vectors_is_zero(self) -> None:
        self.assertEqual(pearson_correlation([0.5, 0.5], [0.2, 0.9]), 0.0)


class UserSimilarityTestCase(unittest.TestCase):
    def test_fewer_than_two_common_items_is_zero(self) -> None:
        a = UserProfile("a", preferences={"x": 0.9, "y": 0.1})
        b = UserProfile("b", preferences={"x": 0.9, "z": 0.4})
        self.assertEqual(user_similarity(a, b), 0.0)

    def test_self_similarity_is_one(self) -> None:
        a = UserProfile("a", preferences={"x": 0.9, "y": 0.1, "z": 0.5})
        self.assertAlmostEqual(user_similarity(a, a), 1.0)

    def test_identical_flat_scores_are_fully_similar(self) -> None:
        a = UserProfile("a", preferences={"x": 0.9, "y": 0.9})
        b = UserProfile("b", preferences={"x": 0.9, "y": 0.9, "z": 0.8})
        self.assertEqual(user_similarity(a, b), 1.0)

    def test_find_similar_users_threshold_and_order(self) -> None:
        target = UserProfile("t", preferences={"x": 0.1, "y": 0.5, "z": 0.9})
        same = UserProfile("same", preferences={"x": 0.1, "y": 0.5, "z": 0.9})
        close = UserProfile("close", preferences={"x": 0.2, "y": 0.4, "z": 0.9})
        opposite = UserProfile("opposite", preferences={"x": 0.9, "y": 0.5, "z": 0.1})
        stranger = UserProfile("stranger", preferences={"q": 1.0})

        result = find_similar_users(target, [opposite, close, target, stranger, same], threshold=0.3, limit=50)

        self.assertEqual([p.user_id for p, _ in result], ["same", "close"])
        self.assertGreaterEqual(result[0][1], result[1][1])

    def test_find_similar_users_limit(self) -> None:
        target = UserProfile("t", preferences={"x": 0.1, "y": 0.9})
        others = [UserProfile(f"u{i}", preferences={"x": 0.1, "y": 0.9}) for i in range(5)]
        self.assertEqual(len(find_similar_users(target, others, limit=2)), 2)


class FeatureSimilarityTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.index = FeatureIndex()
        self.index.build(
            [
                make_record("museum-ca", category="museum", price=10, state="CA", accessibility_tags=["wheelchair"]),
                make_record("park-ny", category="park", price=80, state="NY"),
            ]
        )

    def test_extract_accumulates_buckets(self) -> None:
        profile = UserProfile("u", preferences={"museum-ca": 0.4, "park-ny": 0.2, "unknown-exp": 1.0})
        prefs = extract_feature_preferences(profile, self.index)
        self.assertEqual(prefs.categories, {"museum": 0.4, "park": 0.2})
        self.assertEqual(prefs.price_tiers, {"low": 0.4, "high": 0.2})
        self.assertEqual(prefs.regions, {"CA": 0.4, "NY": 0.2})
        self.assertFalse(prefs.cold_start)

    def test_cold_start_uses_explicit_preferences(self) -> None:
        profile = UserProfile(
            "u",
            explicit_preferences=ExplicitPreferences(categories=["park"], budget_band="high", regions=["NY"]),
        )
        prefs = extract_feature_preferences(profile, self.index)
        self.assertTrue(prefs.cold_start)
        self.assertEqual(prefs.categories, {"park": 1.0})
        self.assertAlmostEqual(feature_similarity(prefs, self.index.get("park-ny")), 1.0)

    def test_weighted_average(self) -> None:
        prefs = FeaturePreferences(categories={"museum": 1.0}, price_tiers={"low": 0.5}, regions={"CA": 0.0})
        # (1.0*0.4 + 0.5*0.2 + 0*0.3 + 1.0*0.1) / 1.0
        self.assertAlmostEqual(feature_similarity(prefs, self.index.get("museum-ca")), 0.6)

    def test_accessibility_needs(self) -> None:
        needs_wheelchair = FeaturePreferences(accessibility_needs=("wheelchair",))
        self.assertEqual(accessibility_match(needs_wheelchair, self.index.get("museum-ca")), 1.0)
        self.assertEqual(accessibility_match(needs_wheelchair, self.index.get("park-ny")), 0.0)
        self.assertEqual(accessibility_match(FeaturePreferences(), self.index.get("park-ny")), 1.0)


if __name__ == "__main__":
    unittest.main()
