"""
Unit tests for the feature catalog and key/name conversion
"""

from snytra.services.feature_catalog import (
    CATEGORY_NAMES,
    FEATURE_CATEGORIES,
    SYSTEM_FEATURES,
    convert_feature_ids_to_names,
    convert_feature_names_to_ids,
    ensure_features_is_list,
    get_feature_ids,
    get_features_by_category,
    get_features_by_ids,
    is_feature_id,
    normalized_feature_keys,
)


def test_catalog_is_consistent():
    """Every feature has a known category and a unique key"""
    ids = [f.id for f in SYSTEM_FEATURES]
    assert len(ids) == len(set(ids))
    for feature in SYSTEM_FEATURES:
        assert feature.category in FEATURE_CATEGORIES
        assert is_feature_id(feature.id)
    assert set(CATEGORY_NAMES) == set(FEATURE_CATEGORIES)


def test_get_features_by_category():
    table_features = get_features_by_category("table_management")
    assert "waitlist" in get_feature_ids(table_features)
    assert all(f.category == "table_management" for f in table_features)


def test_get_features_by_ids_drops_unknown():
    features = get_features_by_ids(["reservations", "not_a_feature"])
    assert [f.name for f in features] == ["Reservations"]


def test_is_feature_id():
    assert is_feature_id("customer_analytics")
    assert not is_feature_id("Customer Analytics")
    assert not is_feature_id("api2")
    assert not is_feature_id(None)


def test_convert_ids_to_names():
    assert convert_feature_ids_to_names(["table_mapping", "waitlist"]) == ["Table Mapping", "Waitlist Management"]


def test_convert_ids_to_names_passes_unknown_through():
    assert convert_feature_ids_to_names(["unknown_key", "Free text"]) == ["unknown_key", "Free text"]


def test_convert_mapping_keys_keep_values():
    converted = convert_feature_ids_to_names({"reservations": True, "waitlist": False})
    assert converted == {"Reservations": True, "Waitlist Management": False}


def test_convert_none_and_scalars():
    assert convert_feature_ids_to_names(None) == []
    assert convert_feature_names_to_ids(None) == []
    assert convert_feature_ids_to_names("reservations") == "reservations"


def test_convert_names_to_ids_is_case_insensitive():
    assert convert_feature_names_to_ids(["table mapping", "EMAIL SUPPORT"]) == ["table_mapping", "email_support"]


def test_round_trip_over_whole_catalog():
    ids = [f.id for f in SYSTEM_FEATURES]
    assert convert_feature_names_to_ids(convert_feature_ids_to_names(ids)) == ids


def test_unknown_names_pass_through_round_trip():
    features = ["Something Custom", "reservations"]
    assert convert_feature_names_to_ids(convert_feature_ids_to_names(features)) == features


def test_ensure_features_is_list():
    assert ensure_features_is_list(None) == []
    assert ensure_features_is_list(["a"]) == ["a"]
    assert ensure_features_is_list({"a": True}) == {"a": True}
    assert ensure_features_is_list('["reservations", "waitlist"]') == ["reservations", "waitlist"]
    assert ensure_features_is_list("reservations, waitlist") == ["reservations", "waitlist"]
    assert ensure_features_is_list(42) == [42]


def test_normalized_feature_keys():
    assert normalized_feature_keys(["Table Mapping", "waitlist", "waitlist"]) == {"table_mapping", "waitlist"}
    assert normalized_feature_keys({"reservations": True, "waitlist": False}) == {"reservations"}
    assert normalized_feature_keys(None) == set()
