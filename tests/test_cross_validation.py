import copy

import pytest

from clockbuild.validation.cross import validate_clock_chain
from shared_libs.config_models.clock_chain_models import DEFAULT_SOURCE_NAME, ClockChain
from shared_libs.config_models.errors import ClockChainError, ValidationError


VALID = {
    "commonDefinitions": {
        "eSyncDefinitions": [{"name": "esync-10M", "esyncConfig": {"transferFrequency": 10000000}}],
        "refSyncDefinitions": [{"name": "gnss-ref", "relatedPinBoardLabel": "GNSS_1PPS"}],
    },
    "structure": [
        {
            "name": "Leader",
            "dpll": {
                "clockId": "0x112233",
                "phaseInputs": {
                    "GNSS_1PPS": {"frequency": 1},
                    "SMA1": {"connector": "SMA1", "syncTechnologyConfigName": "esync-10M"},
                },
                "phaseOutputs": {"OUT0": {"syncTechnologyConfigName": "gnss-ref"}},
                "frequencyInputs": {"REF-10M": {"frequency": 10000000, "referenceSync": "OUT0"}},
                "frequencyOutputs": {"FOUT": {"frequency": 10000000}},
            },
            "ethernet": [{"ports": ["eth0"]}],
        }
    ],
    "behavior": {
        "sources": [
            {"name": "GNSS", "clockId": "0x112233", "sourceType": "gnss", "boardLabel": "GNSS_1PPS"},
            {
                "name": "PTP",
                "clockId": "1122867",
                "sourceType": "ptpTimeReceiver",
                "boardLabel": "SMA1",
                "ptpTimeReceivers": ["eth0"],
            },
        ],
        "conditions": [
            {
                "name": "Initialize",
                "sources": [{"sourceName": DEFAULT_SOURCE_NAME, "conditionType": "default"}],
                "desiredStates": [{"clockId": "0x112233", "boardLabel": "SMA1", "eec": {"priority": 0}}],
            },
            {
                "name": "GNSS lost",
                "sources": [
                    {"sourceName": "GNSS", "conditionType": "lost"},
                    {"sourceName": "PTP", "conditionType": "locked"},
                ],
                "desiredStates": [{"boardLabel": "SMA1", "pps": {"priority": 1}}],
            },
        ],
    },
}


def _document():
    return copy.deepcopy(VALID)


def _pins(document, category):
    return document["structure"][0]["dpll"][category]


def _validate(document) -> None:
    validate_clock_chain(ClockChain.model_validate(document))


def test_valid_document_passes():
    _validate(_document())


def test_minimal_document_passes():
    _validate({"structure": [{"name": "S", "dpll": {}, "ethernet": [{"ports": ["eth0"]}]}]})


def test_empty_structure():
    with pytest.raises(ValidationError, match="structure must contain at least one subsystem"):
        _validate({"structure": []})


def test_validation_error_is_value_error():
    assert issubclass(ValidationError, ValueError)
    assert issubclass(ValidationError, ClockChainError)


@pytest.mark.parametrize("key", ["eSyncDefinitions", "refSyncDefinitions"])
def test_duplicate_common_definition_names(key):
    document = _document()
    definitions = document["commonDefinitions"][key]
    definitions.append(copy.deepcopy(definitions[0]))
    with pytest.raises(ValidationError, match="duplicate .* definition name"):
        _validate(document)


@pytest.mark.parametrize("key, label", [("eSyncDefinitions", "eSync"), ("refSyncDefinitions", "refSync")])
def test_empty_common_definition_names(key, label):
    document = _document()
    document["commonDefinitions"][key][0]["name"] = ""
    with pytest.raises(ValidationError, match=f"{label} definition name must not be empty"):
        _validate(document)


def test_same_name_across_esync_and_refsync_allowed():
    document = _document()
    document["commonDefinitions"]["refSyncDefinitions"][0]["name"] = "esync-10M"
    _pins(document, "phaseOutputs")["OUT0"]["syncTechnologyConfigName"] = "esync-10M"
    _validate(document)


def test_invalid_dpll_clock_id():
    document = _document()
    document["structure"][0]["dpll"]["clockId"] = "leader"
    with pytest.raises(ValidationError, match="invalid clock ID in subsystem Leader"):
        _validate(document)


def test_frequency_and_sync_name_exclusive():
    document = _document()
    _pins(document, "phaseInputs")["SMA1"]["frequency"] = 1
    with pytest.raises(ValidationError, match="invalid pin config SMA1 in subsystem Leader: .*mutually exclusive"):
        _validate(document)


def test_bad_connector():
    document = _document()
    _pins(document, "phaseInputs")["SMA1"]["connector"] = "SMA 1"
    with pytest.raises(ValidationError, match="invalid connector format"):
        _validate(document)


def test_unknown_sync_technology_name():
    document = _document()
    _pins(document, "phaseInputs")["SMA1"]["syncTechnologyConfigName"] = "esync-25M"
    with pytest.raises(ValidationError, match="referenced sync technology config esync-25M not found"):
        _validate(document)


def test_reference_sync_on_frequency_output_rejected():
    document = _document()
    _pins(document, "frequencyOutputs")["FOUT"]["referenceSync"] = "GNSS_1PPS"
    with pytest.raises(ValidationError, match="frequency output pin FOUT"):
        _validate(document)


@pytest.mark.parametrize("category, label", [("phaseInputs", "GNSS_1PPS"), ("phaseOutputs", "OUT0")])
def test_reference_sync_on_phase_pin_rejected(category, label):
    document = _document()
    _pins(document, category)[label]["referenceSync"] = "SMA1"
    with pytest.raises(ValidationError, match=f"non-frequency-input pin {label}"):
        _validate(document)


@pytest.mark.parametrize("target", ["GNSS_1PPS", "OUT0"])
def test_reference_sync_on_frequency_input_accepted(target):
    document = _document()
    _pins(document, "frequencyInputs")["REF-10M"]["referenceSync"] = target
    _validate(document)


@pytest.mark.parametrize("target", ["FOUT", "REF-10M", "MISSING"])
def test_reference_sync_must_name_phase_pin(target):
    document = _document()
    _pins(document, "frequencyInputs")["REF-10M"]["referenceSync"] = target
    with pytest.raises(ValidationError, match=f"referenceSync '{target}' not found among phase pins"):
        _validate(document)


def test_source_with_bad_clock_id():
    document = _document()
    document["behavior"]["sources"][0]["clockId"] = "gnss-card"
    with pytest.raises(ValidationError, match="invalid source GNSS: invalid clock ID"):
        _validate(document)


@pytest.mark.parametrize("receivers", [None, []])
def test_ptp_source_needs_receivers(receivers):
    document = _document()
    document["behavior"]["sources"][1]["ptpTimeReceivers"] = receivers
    with pytest.raises(ValidationError, match="ptpTimeReceivers must be specified"):
        _validate(document)


def test_bad_ptp_receiver_name():
    document = _document()
    document["behavior"]["sources"][1]["ptpTimeReceivers"] = ["eth0", "eth 1"]
    with pytest.raises(ValidationError, match="invalid PTP time receiver format"):
        _validate(document)


def test_duplicate_source_name():
    document = _document()
    document["behavior"]["sources"][1]["name"] = "GNSS"
    with pytest.raises(ValidationError, match="duplicate source name: GNSS"):
        _validate(document)


def test_condition_references_unknown_source():
    document = _document()
    document["behavior"]["conditions"][1]["sources"][1]["sourceName"] = "NTP"
    with pytest.raises(ValidationError, match="referenced source NTP not found in condition GNSS lost"):
        _validate(document)


def test_invalid_desired_state_clock_id():
    document = _document()
    document["behavior"]["conditions"][0]["desiredStates"][0]["clockId"] = "leader"
    with pytest.raises(ValidationError, match="invalid clock ID in desired state"):
        _validate(document)


def test_first_violation_reported():
    document = _document()
    document["commonDefinitions"]["eSyncDefinitions"][0]["name"] = ""
    document["structure"][0]["dpll"]["clockId"] = "leader"
    document["behavior"]["sources"][0]["clockId"] = "gnss-card"
    with pytest.raises(ValidationError, match="eSync definition name must not be empty"):
        _validate(document)
