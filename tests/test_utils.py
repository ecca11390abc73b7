import pytest

from quickride import utils


@pytest.mark.parametrize("cpf", ["529.982.247-25", "52998224725", "111.444.777-35"])
def test_validate_cpf_accepts_valid_numbers(cpf):
    assert utils.validate_cpf(cpf)


@pytest.mark.parametrize("cpf", [
    "529.982.247-26",   # wrong second check digit
    "529.982.247-15",   # wrong first check digit
    "111.111.111-11",   # repeated digit
    "000.000.000-00",
    "529.982.247",      # too short
    "5299822472512",    # too long
    "",
])
def test_validate_cpf_rejects_invalid_numbers(cpf):
    assert not utils.validate_cpf(cpf)


def test_mask_cpf_formats_progressively():
    assert utils.mask_cpf("529") == "529"
    assert utils.mask_cpf("5299") == "529.9"
    assert utils.mask_cpf("5299822") == "529.982.2"
    assert utils.mask_cpf("5299822472") == "529.982.247-2"
    assert utils.mask_cpf("52998224725") == "529.982.247-25"


def test_mask_cpf_drops_extra_digits_and_noise():
    assert utils.mask_cpf("529.982.247-2599") == "529.982.247-25"
    assert utils.mask_cpf("abc") == ""


def test_mask_hidden_cpf():
    assert utils.mask_hidden_cpf("529.982.247-25") == "529.***.***-25"
    assert utils.mask_hidden_cpf("123.***.***-45") == "123.***.***-45"


def test_mask_phone():
    assert utils.mask_phone("93") == "93"
    assert utils.mask_phone("9398118") == "(93) 98118"
    assert utils.mask_phone("93981183360") == "(93) 98118-3360"
    assert utils.mask_phone("939811833601234") == "(93) 98118-3360"


def test_is_complete_phone():
    assert utils.is_complete_phone("(93) 98118-3360")
    assert not utils.is_complete_phone("(93) 98118-336")
    assert not utils.is_complete_phone("93981183360")


def test_format_brl():
    assert utils.format_brl(23.4) == "R$ 23,40"
    assert utils.format_brl(1234.5) == "R$ 1.234,50"
    assert utils.format_brl(None) == "-"


def test_format_distance():
    assert utils.format_distance(1.234) == "1.2 km"
    assert utils.format_distance(None) == "-"


def test_approach_progress_pct():
    assert utils.approach_progress_pct(1.2) == pytest.approx(76.0)
    assert utils.approach_progress_pct(0.1) == pytest.approx(98.0)
    assert utils.approach_progress_pct(5.0) == 10.0
    assert utils.approach_progress_pct(None) == 0.0


def test_new_id_is_unique():
    assert len({utils.new_id() for _ in range(100)}) == 100
