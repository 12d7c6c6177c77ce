from app.draft.schemas import RealPlayerOut
from app.draft.wizard import DraftWizard, WizardStep


def _player(pid, role, value, name=None, school="ITIS Galilei"):
    return RealPlayerOut(id=pid, name=name or pid, role=role, school_name=school, value=value)


def _pool():
    players = [_player(f"gk{i}", "GK", 5) for i in range(3)]
    players += [_player(f"def{i}", "DEF", 5) for i in range(6)]
    players += [_player(f"mid{i}", "MID", 5) for i in range(6)]
    players += [_player(f"att{i}", "ATT", 10) for i in range(3)]
    players.append(_player("star", "ATT", 95, name="Diego Lombardi", school="Liceo Classico Dante"))
    return players


def _fill(wizard, role, count):
    for pid in [p.id for p in wizard.players.values() if p.role == role][:count]:
        assert wizard.toggle(pid)


def test_name_step_requires_two_characters():
    wizard = DraftWizard(_pool(), budget=100)
    wizard.team_name = " A "
    assert wizard.next() is WizardStep.NAME

    wizard.team_name = "AB"
    assert wizard.next() is WizardStep.GK


def test_name_step_rejects_names_over_thirty_characters():
    wizard = DraftWizard(_pool(), budget=100)
    wizard.team_name = "x" * 31
    assert not wizard.can_advance()
    assert wizard.next() is WizardStep.NAME

    wizard.team_name = "  " + "x" * 30 + "  "
    assert wizard.next() is WizardStep.GK


def test_role_quota_blocks_extra_selection():
    wizard = DraftWizard(_pool(), budget=100)
    assert wizard.toggle("gk0")
    assert wizard.toggle("gk1")
    assert not wizard.toggle("gk2")
    assert wizard.count_for_role("GK") == 2


def test_budget_blocks_expensive_player():
    wizard = DraftWizard(_pool(), budget=100)
    _fill(wizard, "GK", 2)
    assert wizard.remaining == 90
    assert not wizard.can_select("star")
    assert not wizard.toggle("star")


def test_deselect_frees_budget_and_quota():
    wizard = DraftWizard(_pool(), budget=100)
    wizard.toggle("gk0")
    wizard.toggle("gk1")
    assert wizard.toggle("gk0")
    assert wizard.spent == 5
    assert wizard.can_select("gk2")


def test_full_walkthrough_builds_request():
    wizard = DraftWizard(_pool(), budget=100)
    wizard.team_name = "  Galilei Boys "
    wizard.next()

    for role, count in (("GK", 2), ("DEF", 5), ("MID", 5), ("ATT", 3)):
        assert wizard.step.value == role
        assert not wizard.can_advance()
        _fill(wizard, role, count)
        assert wizard.can_advance()
        wizard.next()

    assert wizard.step is WizardStep.CONFIRM
    assert wizard.spent == 90

    request = wizard.request()
    assert request.team_name == "Galilei Boys"
    assert len(request.player_ids) == 15


def test_failure_keeps_selection():
    wizard = DraftWizard(_pool(), budget=100)
    _fill(wizard, "GK", 2)
    wizard.record_failure("Insufficient budget: cost 120, budget 100")
    assert wizard.error.startswith("Insufficient budget")
    assert wizard.count_for_role("GK") == 2


def test_search_matches_player_or_school():
    wizard = DraftWizard(_pool(), budget=100)
    wizard.search = "dante"
    assert [p.id for p in wizard.players_for_role("ATT")] == ["star"]
    wizard.search = "LOMBARDI"
    assert [p.id for p in wizard.players_for_role("ATT")] == ["star"]


def test_back_stops_at_first_step():
    wizard = DraftWizard(_pool(), budget=100)
    assert wizard.back() is WizardStep.NAME
