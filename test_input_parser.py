import pytest

from errors import InputValidationError
from input_parser import (
    DEFAULT_TLDS,
    EXTENDED_TLDS,
    normalize_name,
    normalize_tld,
    parse_user_input,
    tlds_to_check,
    validate_name,
)


def test_normalize_name_keeps_alnum_and_dashes():
    assert normalize_name("  Brew--Works! ") == "brew-works"
    assert normalize_name("-Fresh Sip-") == "freshsip"


def test_validate_name_rejects_empty_and_short():
    with pytest.raises(InputValidationError):
        validate_name("   ")
    with pytest.raises(InputValidationError):
        validate_name("a!")


def test_validate_name_rejects_too_long():
    with pytest.raises(InputValidationError):
        validate_name("a" * 64)
    with pytest.raises(InputValidationError):
        validate_name("a" * 201)


def test_parse_name_with_extension():
    parsed = parse_user_input("BrewWorks.io")
    assert parsed.name == "brewworks"
    assert parsed.extension == ".io"
    assert parsed.has_extension


def test_parse_dot_com_is_not_read_as_dot_co():
    assert parse_user_input("brewworks.com").extension == ".com"


def test_parse_two_words_are_joined():
    parsed = parse_user_input("Brew Works")
    assert parsed.name == "brewworks"
    assert not parsed.is_sentence


def test_parse_sentence_drops_stop_words():
    parsed = parse_user_input("a tea shop for cats")
    assert parsed.is_sentence
    assert parsed.name == "teashopcats"


def test_normalize_tld():
    assert normalize_tld("IO") == ".io"
    assert normalize_tld(".co.uk") == ".co.uk"
    with pytest.raises(InputValidationError):
        normalize_tld("not a tld")


def test_tlds_default_and_extended():
    assert tlds_to_check() == DEFAULT_TLDS
    assert tlds_to_check(extended=True) == DEFAULT_TLDS + EXTENDED_TLDS


def test_user_extension_checked_first_without_duplicates():
    parsed = parse_user_input("brewworks.io")
    tlds = tlds_to_check(parsed)
    assert tlds[0] == ".io"
    assert tlds.count(".io") == 1
    assert set(DEFAULT_TLDS) <= set(tlds)


def test_requested_tlds_replace_defaults():
    assert tlds_to_check(requested=["com", ".dev", ".com"]) == [".com", ".dev"]
