from campaign_core.data import DEFAULT_LABELS, SERIES_STYLES, Dataset, default_dataset
from campaign_core.options import DashboardOptions, IngestSettings
from campaign_core.state import (
    STATUS_DEFAULT,
    STATUS_EMPTY,
    STATUS_LOADED,
    STATUS_REJECTED,
    DashboardStore,
    achievement_percentages,
    apply_upload,
    apply_upload_once,
    category_series,
    department_summary,
    prepare_context,
    reset_state,
    summary_cards,
)


def test_initial_state_holds_default_dataset(state):
    assert state.dataset == default_dataset()
    assert state.status == STATUS_DEFAULT
    assert state.revision == 0
    assert state.source == "default"


def test_upload_replaces_dataset(state, scenario_a_text):
    new_state = apply_upload(state, scenario_a_text, source="a.csv")
    assert new_state.status == STATUS_LOADED
    assert new_state.revision == 1
    assert new_state.source == "a.csv"
    assert new_state.dataset.labels == ("DeptA", "DeptB")
    # previous state is untouched
    assert state.dataset == default_dataset()


def test_empty_upload_keeps_previous_dataset(state):
    new_state = apply_upload(state, "title\nheader\nBadRow;only;two")
    assert new_state.status == STATUS_REJECTED
    assert new_state.dataset is state.dataset
    assert new_state.revision == state.revision
    assert new_state.source == "default"
    assert [i.reason for i in new_state.issues] == ["too_few_fields"]


def test_empty_upload_replaces_when_configured(state):
    settings = IngestSettings(keep_previous_on_empty=False)
    new_state = apply_upload(state, "title\nheader", settings=settings)
    assert new_state.status == STATUS_EMPTY
    assert new_state.dataset.is_empty
    assert new_state.revision == 1


def test_later_upload_wins(state, scenario_a_text):
    first = apply_upload(state, scenario_a_text, source="first.csv")
    second = apply_upload(first, "t\nh\nX;10;1;9", source="second.csv")
    assert second.dataset.labels == ("X",)
    assert second.revision == 2


def test_reset_state(state, scenario_a_text):
    loaded = apply_upload(state, scenario_a_text)
    back = reset_state(loaded)
    assert back.dataset == default_dataset()
    assert back.status == STATUS_DEFAULT
    assert back.revision == 2


def test_upload_once_skips_already_applied_file(state, scenario_a_text):
    loaded, applied = apply_upload_once(state, None, "file-1", lambda: scenario_a_text, source="a.csv")
    assert loaded.dataset.labels == ("DeptA", "DeptB")
    assert applied == "file-1"

    # reset with the same file still attached: defaults stay in place
    back = reset_state(loaded)
    after, applied = apply_upload_once(back, applied, "file-1", lambda: scenario_a_text, source="a.csv")
    assert after is back
    assert after.dataset == default_dataset()
    assert applied == "file-1"


def test_upload_once_applies_new_file_with_same_name_and_size(state):
    first = "t\nh\nA;100;50;50"
    second = "t\nh\nA;100;60;40"
    assert len(first) == len(second)
    loaded, applied = apply_upload_once(state, None, "file-1", lambda: first, source="cmp.csv")
    loaded, applied = apply_upload_once(loaded, applied, "file-2", lambda: second, source="cmp.csv")
    assert loaded.dataset.achieved == (60.0,)
    assert applied == "file-2"
    assert loaded.revision == 2


def test_upload_once_without_file(state):
    called = []
    same, applied = apply_upload_once(state, "file-1", None, lambda: called.append(1) or "")
    assert same is state
    assert applied == "file-1"
    assert called == []


def test_prepare_context_with_huge_values(state):
    loaded = apply_upload(state, "t\nh\nA;1e30;5;5")
    ctx = prepare_context({"numerals": "latn"}, loaded)
    assert ctx["frame"]["target_display"].iloc[0].startswith("1,000,000,000,000,000,0")
    assert ctx["frame"]["achievement_pct_display"].iloc[0] == "0.0%"


def test_store_upload_and_reset(store, scenario_a_text):
    store.upload(scenario_a_text, source="a.csv")
    assert store.current().dataset.labels == ("DeptA", "DeptB")
    store.upload("t\nh")
    assert store.current().status == STATUS_REJECTED
    assert store.current().dataset.labels == ("DeptA", "DeptB")
    store.reset()
    assert store.current().dataset.labels == DEFAULT_LABELS


def test_describe_lists_issues(state):
    described = apply_upload(state, "t\nh\nA;1;1;0\nB;x;1;0").describe()
    assert described["rows"] == 1
    assert described["issues"] == [{"line_number": 4, "raw": "B;x;1;0", "reason": "invalid_number", "field": "target"}]


def test_achievement_percentages(scenario_a_text, state):
    ds = apply_upload(state, scenario_a_text).dataset
    assert achievement_percentages(ds) == [50.0, 75.0]


def test_default_first_department_achievement():
    assert achievement_percentages(default_dataset())[0] == 77.8


def test_category_series_colors():
    series = category_series(default_dataset())
    assert [s["key"] for s in series] == ["target", "achieved", "remaining"]
    assert series[0]["fill_color"] == SERIES_STYLES["target"]["fill"]
    assert series[1]["border_color"] == "rgba(0, 255, 255, 1)"
    assert series[2]["values"][0] == 3322623


def test_department_summary_first_department():
    summary = department_summary(default_dataset())
    assert summary.has_data
    assert summary.department == DEFAULT_LABELS[0]
    assert summary.target == 15000000
    assert summary.remaining == 3322623
    assert summary.achievement_pct == 77.8


def test_department_summary_empty_dataset():
    summary = department_summary(Dataset())
    assert not summary.has_data
    assert summary.target is None
    assert summary.achievement_pct is None


def test_department_summary_out_of_range():
    assert not department_summary(default_dataset(), index=10).has_data


def test_summary_cards_placeholder():
    cards = summary_cards(department_summary(Dataset()))
    assert [c["display"] for c in cards] == ["N/A", "N/A", "N/A", "N/A"]


def test_summary_cards_formatting():
    cards = summary_cards(department_summary(default_dataset()), numerals="latn")
    assert [c["display"] for c in cards] == ["15,000,000", "11,677,377", "3,322,623", "77.8%"]


def test_prepare_context_with_selection(state):
    ctx = prepare_context({"selected_departments": [DEFAULT_LABELS[2], "unknown"]}, state)
    assert ctx["options"].selected_departments == [DEFAULT_LABELS[2]]
    assert ctx["view"].labels == (DEFAULT_LABELS[2],)
    assert ctx["dataset"] is state.dataset
    assert ctx["frame"]["achieved_display"].tolist() == ["٨٬٦٦٠٬٠٠٠"]
    assert ctx["frame"]["achievement_pct_display"].tolist() == ["86.6%"]


def test_prepare_context_accepts_options_object(state):
    ctx = prepare_context(DashboardOptions(numerals="latn"), state)
    assert len(ctx["frame"]) == 5
    assert ctx["frame"]["target_display"].iloc[4] == "39,000,000"
