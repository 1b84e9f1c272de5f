import pytest

from casebook.services import scope, store
from casebook.services.catalog import CANONICAL_PHASES, Phase, steps_for_phase

ALL_PHASES = [p.value for p in CANONICAL_PHASES]
MALWARE_PHASES = ["MALWARE_STATIC", "MALWARE_DYNAMIC", "MALWARE_REVERSING"]


@pytest.mark.parametrize(
    "selected",
    [
        ["Full Forensics"],
        ["Memory Forensics", "Full Forensics"],
        ["Full Forensics", "OS & Artifacts", "Custom"],
    ],
)
def test_full_forensics_selects_every_phase(selected):
    phases, _ = scope.resolve(selected)
    assert phases == ALL_PHASES


def test_single_profiles():
    assert scope.resolve(["OS & Artifacts"])[0] == ["OS_ARTIFACTS"]
    assert scope.resolve(["Memory Forensics"])[0] == ["MEMORY"]
    assert scope.resolve(["Malware Analysis"])[0] == MALWARE_PHASES


def test_phases_come_out_in_canonical_order():
    phases, label = scope.resolve(["Malware Analysis", "OS & Artifacts"])
    assert phases == ["OS_ARTIFACTS", *MALWARE_PHASES]
    assert label == "Malware Analysis + OS & Artifacts"


def test_custom_maps_to_all_phases_and_keywords_go_in_label():
    phases, label = scope.resolve(["Custom"], "prefetch, amcache")
    assert phases == ALL_PHASES
    assert label == "Custom: prefetch, amcache"

    _, label = scope.resolve(["Memory Forensics", "Custom"], "usb")
    assert label == "Memory Forensics (+ Custom: usb)"


def test_unknown_profiles_are_ignored():
    phases, label = scope.resolve(["Cloud Forensics", "Memory Forensics"])
    assert phases == ["MEMORY"]
    assert label == "Cloud Forensics + Memory Forensics"


def test_apply_scope_persists_and_empty_selection_is_noop(session):
    case = store.create_case(session, "INC-1", "J. Doe")

    case = scope.apply_scope(session, case, [])
    assert case.scope == ""
    assert case.included_phases == []

    case = scope.apply_scope(session, case, ["Memory Forensics"])
    assert case.scope == "Memory Forensics"
    assert case.included_phases == ["MEMORY"]

    reloaded = store.get_case(session, case.id)
    assert reloaded.included_phases == ["MEMORY"]


def test_custom_keywords_narrow_steps(session):
    case = store.create_case(session, "INC-2", "J. Doe")
    case = scope.apply_scope(session, case, ["Custom"], "Prefetch, volatility")

    os_steps = [s.id for s in scope.filter_steps(case, "OS_ARTIFACTS")]
    mem_steps = [s.id for s in scope.filter_steps(case, "MEMORY")]

    assert os_steps == ["prefetch"]
    # "volatility" matches titles and tool names
    assert mem_steps == ["volatility_analysis", "anomalous_processes", "suspicious_services"]
    assert scope.filter_steps(case, "MALWARE_REVERSING") == []


def test_keywords_without_custom_profile_do_not_filter(session):
    case = store.create_case(session, "INC-3", "J. Doe")
    case = scope.apply_scope(session, case, ["Memory Forensics"])
    case.custom_keywords = "prefetch"

    assert len(scope.filter_steps(case, "MEMORY")) == len(steps_for_phase(Phase.MEMORY))


def test_next_phase_and_progress(session):
    case = store.create_case(session, "INC-4", "J. Doe")
    case = scope.apply_scope(session, case, ["Memory Forensics", "Malware Analysis"])

    assert scope.next_phase(case, "MEMORY") == "MALWARE_STATIC"
    assert scope.next_phase(case, "MALWARE_REVERSING") is None
    assert scope.next_phase(case, "OS_ARTIFACTS") is None

    assert scope.progress(case)[0] == 0
    case.findings = {"memory_dump": "winpmem image", "volatility_analysis": "  "}
    completed, total, percent = scope.progress(case)
    assert completed == 1
    assert total == len(scope.steps_in_scope(case))
    assert percent == round(100 / total)
