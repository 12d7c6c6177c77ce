import pytest

from app.draft import validator
from app.draft.rules import DRAFT_RULES, DraftErrorCode, DraftRejected


def test_rules_roster_size_matches_quotas():
    assert DRAFT_RULES.roster_size == 15
    assert dict(DRAFT_RULES.role_quotas) == {"GK": 2, "DEF": 5, "MID": 5, "ATT": 3}


def test_team_name_is_trimmed():
    assert validator.validate_team_name("  Dream Team ") == "Dream Team"


def test_first_role_mismatch_follows_role_order():
    roles = ["GK"] * 2 + ["DEF"] * 5 + ["MID"] * 4 + ["ATT"] * 4
    assert validator.first_role_mismatch(roles) == ("MID", 5, 4)


def test_first_role_mismatch_none_for_valid_roster():
    roles = ["ATT"] * 3 + ["MID"] * 5 + ["GK"] * 2 + ["DEF"] * 5
    assert validator.first_role_mismatch(roles) is None


def test_missing_role_counts_as_zero():
    roles = ["DEF"] * 7 + ["MID"] * 5 + ["ATT"] * 3
    with pytest.raises(DraftRejected) as exc:
        validator.validate_role_composition(roles)
    assert exc.value.details == {"role": "GK", "required": 2, "actual": 0}


def test_size_checked_before_duplicates():
    with pytest.raises(DraftRejected) as exc:
        validator.validate_roster_ids(["same"] * 14)
    assert exc.value.code is DraftErrorCode.WRONG_ROSTER_SIZE


def test_budget_boundary():
    validator.validate_budget(100, 100)
    with pytest.raises(DraftRejected) as exc:
        validator.validate_budget(101, 100)
    assert exc.value.code is DraftErrorCode.INSUFFICIENT_BUDGET
    assert exc.value.message == "Insufficient budget: cost 101, budget 100"
