# tests/test_cache_keys.py
"""Tests for cache key generation."""

import pytest


def test_key_is_deterministic():
    from pm_pipeline.pipeline.cache_keys import generate_key

    payload = {"intent": "build a dashboard", "params": {"b": 1, "a": 2}}

    assert generate_key("intent", payload) == generate_key("intent", payload)


def test_key_ignores_dict_order_and_none():
    from pm_pipeline.pipeline.cache_keys import generate_key

    first = generate_key("intent", {"a": 1, "b": 2, "c": None})
    second = generate_key("intent", {"b": 2, "a": 1})

    assert first == second


def test_distinct_inputs_give_distinct_keys():
    from pm_pipeline.pipeline.cache_keys import intent_key

    keys = {intent_key(f"Build feature number {i}") for i in range(200)}

    assert len(keys) == 200


def test_category_is_prefix():
    from pm_pipeline.pipeline.cache_keys import analysis_key, intent_key

    assert intent_key("Build a dashboard").startswith("intent:")
    assert analysis_key({"business_objective": "x"}).startswith("analysis:")


def test_empty_qualifier_markers():
    from pm_pipeline.pipeline.cache_keys import analysis_key, intent_key, roi_key

    assert intent_key("Build a dashboard").endswith(":no-params")
    assert intent_key("Build a dashboard", {}).endswith(":no-params")
    assert analysis_key({"business_objective": "x"}).endswith(":all-techniques")
    assert roi_key({"id": "wf"}).endswith(":no-optimization")


def test_params_change_key():
    from pm_pipeline.pipeline.cache_keys import intent_key

    assert intent_key("Build a dashboard") != intent_key(
        "Build a dashboard", {"performance_sensitivity": "high"}
    )


def test_technique_order_does_not_matter():
    from pm_pipeline.pipeline.cache_keys import analysis_key
    from pm_pipeline.stages.business_analyzer import technique

    parsed = {"business_objective": "x"}
    first = analysis_key(parsed, [technique("MECE", 0.8), technique("ImpactEffort", 0.7)])
    second = analysis_key(parsed, [technique("ImpactEffort", 0.7), technique("MECE", 0.8)])

    assert first == second


def test_model_objects_hash_like_their_dicts():
    from pm_pipeline.models import ParsedIntent
    from pm_pipeline.pipeline.cache_keys import fingerprint

    parsed = ParsedIntent.fallback("Build a dashboard")

    assert fingerprint(parsed) == fingerprint(parsed.to_dict())


@pytest.mark.parametrize("category", ["", "bad:category"])
def test_invalid_category(category):
    from pm_pipeline.pipeline.cache_keys import generate_key

    with pytest.raises(ValueError):
        generate_key(category, {})
