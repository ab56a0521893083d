import json
from fractions import Fraction

import pytest

from src.services.roulette.definitions import (
    load_pools_file,
    parse_pool_definition,
    parse_pools_document,
)
from src.services.roulette.errors import (
    DatabaseUnavailableError,
    ErrorKind,
    PersistenceFailure,
    PoolNotFoundError,
    StorageTimeout,
    Triage,
    ValidationError,
)
from src.services.roulette.models import (
    DrawResult,
    ExcludeLastN,
    ExcludeTag,
    NoExclusion,
    Pool,
    PoolEntry,
    exclusion_from_dict,
    to_weight,
    validate_pool,
)
from tests.helpers import make_pool


# =============================================================================
# Weights
# =============================================================================

@pytest.mark.parametrize("value, expected", [
    (3, Fraction(3)),
    (0.5, Fraction(1, 2)),
    ("1/3", Fraction(1, 3)),
    (" 2.25 ", Fraction(9, 4)),
    (Fraction(2, 7), Fraction(2, 7)),
])
def test_to_weight_accepts_numbers(value, expected):
    assert to_weight(value) == expected


@pytest.mark.parametrize("value", [float("nan"), float("inf"), "abc", "1/0", True, None])
def test_to_weight_rejects_non_numbers(value):
    with pytest.raises(ValidationError):
        to_weight(value)


# =============================================================================
# Pool validation
# =============================================================================

def test_valid_pool_passes():
    validate_pool(make_pool(rule=ExcludeLastN(1)))
    validate_pool(make_pool(rule=ExcludeTag("rare")))


@pytest.mark.parametrize("weights", [
    {"a": 0},
    {"a": -1},
    {"a": 1, "b": "0/5"},
])
def test_non_positive_weight_rejected(weights):
    with pytest.raises(ValidationError):
        validate_pool(make_pool(weights=weights))


def test_empty_pool_rejected():
    with pytest.raises(ValidationError, match="no entries"):
        validate_pool(make_pool(weights={}))


def test_duplicate_entry_ids_rejected():
    entry = PoolEntry.create("a", 1)
    with pytest.raises(ValidationError, match="duplicate"):
        validate_pool(Pool(id="p", entries=(entry, entry)))


def test_blank_ids_rejected():
    with pytest.raises(ValidationError):
        validate_pool(make_pool(pool_id="  "))
    with pytest.raises(ValidationError):
        validate_pool(make_pool(weights={"": 1}))


@pytest.mark.parametrize("rule", [ExcludeLastN(0), ExcludeLastN(-2), ExcludeLastN(True), ExcludeLastN(None), ExcludeTag("")])
def test_malformed_exclusion_rules_rejected(rule):
    with pytest.raises(ValidationError):
        validate_pool(make_pool(rule=rule))


def test_same_definition_ignores_version():
    assert make_pool(version=1).same_definition(make_pool(version=4))
    assert not make_pool(weights={"a": 1}).same_definition(make_pool(weights={"a": 2}))


def test_pool_helpers():
    pool = make_pool(weights={"a": 1, "b": "1/2"}, name="")
    assert pool.display_name == "quests"
    assert pool.entry_ids == ("a", "b")
    assert pool.total_weight == Fraction(3, 2)
    assert pool.entry("b").title == "B"
    assert pool.entry("missing") is None


def test_entry_metadata_is_read_only():
    entry = PoolEntry.create("a", 1, metadata={"title": "A"})
    with pytest.raises(TypeError):
        entry.metadata["title"] = "changed"


def test_exclusion_round_trip():
    for rule in (NoExclusion(), ExcludeLastN(3), ExcludeTag("elder")):
        assert exclusion_from_dict(rule.to_dict()) == rule
    with pytest.raises(ValidationError):
        exclusion_from_dict({"type": "cooldown"})


# =============================================================================
# Definitions
# =============================================================================

def test_parse_pool_definition_defaults():
    pool = parse_pool_definition({
        "id": "weapons",
        "entries": [{"id": "bow"}, {"id": "lance", "weight": "3/2", "tags": ["heavy"]}],
    })
    assert pool.version == 0
    assert pool.exclusion_rule == NoExclusion()
    assert pool.entry("bow").weight == 1
    assert pool.entry("lance").weight == Fraction(3, 2)
    assert pool.entry("lance").tags == frozenset({"heavy"})


def test_parse_pool_definition_exclusion():
    pool = parse_pool_definition({
        "id": "quests",
        "exclusion": {"type": "tag", "tag": "elder"},
        "entries": [{"id": "a"}],
    })
    assert pool.exclusion_rule == ExcludeTag("elder")


@pytest.mark.parametrize("data", [
    {"id": "p", "entries": []},
    {"id": "p", "entries": [{"id": "a", "weight": 0}]},
    {"id": "p", "entries": [{"id": "a", "weight": "NaN"}]},
    {"id": "p", "exclusion": {"type": "last_n"}, "entries": [{"id": "a"}]},
    {"id": "p", "exclusion": {"type": "cooldown"}, "entries": [{"id": "a"}]},
    {"entries": [{"id": "a"}]},
    "not a pool",
])
def test_parse_pool_definition_rejects(data):
    with pytest.raises(ValidationError):
        parse_pool_definition(data)


def test_parse_pools_document_keeps_valid_pools():
    pools, errors = parse_pools_document({"pools": [
        {"id": "good", "entries": [{"id": "a"}]},
        {"id": "bad", "entries": [{"id": "a", "weight": -1}]},
        {"name": "no id"},
    ]})
    assert [pool.id for pool in pools] == ["good"]
    assert set(errors) == {"bad", "#2"}
    assert all(isinstance(error, ValidationError) for error in errors.values())


def test_parse_pools_document_accepts_bare_list():
    pools, errors = parse_pools_document([{"id": "good", "entries": [{"id": "a"}]}])
    assert len(pools) == 1
    assert errors == {}


def test_parse_pools_document_rejects_bad_shape():
    with pytest.raises(ValidationError):
        parse_pools_document({"pool": []})
    with pytest.raises(ValidationError, match="repeats"):
        parse_pools_document([
            {"id": "dup", "entries": [{"id": "a"}]},
            {"id": "dup", "entries": [{"id": "b"}]},
        ])


def test_load_pools_file(tmp_path):
    assert load_pools_file(tmp_path / "missing.json") == ([], {})

    path = tmp_path / "pools.json"
    path.write_text(json.dumps({"pools": [{"id": "p", "entries": [{"id": "a"}]}]}), encoding="utf-8")
    pools, errors = load_pools_file(path)
    assert [pool.id for pool in pools] == ["p"]

    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ValidationError, match="not valid JSON"):
        load_pools_file(path)


# =============================================================================
# Errors and results
# =============================================================================

def test_error_kinds_and_triage():
    assert PoolNotFoundError("x").kind == ErrorKind.POOL_NOT_FOUND
    assert "x" in str(PoolNotFoundError("x"))
    assert StorageTimeout().triage == Triage.DELAYED
    assert PersistenceFailure().triage == Triage.IMMEDIATE
    assert DatabaseUnavailableError().kind == ErrorKind.PERSISTENCE_FAILURE
    assert ValidationError().triage == Triage.NOT_BAD


def test_failed_draw_result_has_message():
    result = DrawResult.failed(ErrorKind.POOL_EXHAUSTED)
    assert not result.success
    assert result.record is None
    assert "No eligible entries" in result.message
