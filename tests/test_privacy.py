"""Tests for tokens, personal data and choice adaptation."""
from pathlib import Path

import pytest

from formbridge.privacy.choices import match_choice_option
from formbridge.privacy.personal_data import PersonalDataRecord, load_personal_data
from formbridge.privacy.tokens import (
    TOKEN_TO_PERSONAL_KEY,
    PlaceholderToken,
    is_token,
    looks_like_token,
    parse_token,
)


class TestTokens:
    """Tests for the placeholder token vocabulary."""

    def test_mapping_is_total(self) -> None:
        assert set(TOKEN_TO_PERSONAL_KEY) == set(PlaceholderToken)

    def test_mapping_targets_record_keys(self) -> None:
        assert set(TOKEN_TO_PERSONAL_KEY.values()) <= set(PersonalDataRecord.model_fields)

    def test_wire_text(self) -> None:
        assert PlaceholderToken.FIRST_NAME.value == "[FIRST_NAME]"

    @pytest.mark.parametrize("text", ["[FIRST_NAME]", "FIRST_NAME", "first_name"])
    def test_parse_token_accepts_wire_text_and_name(self, text: str) -> None:
        assert parse_token(text) is PlaceholderToken.FIRST_NAME

    def test_parse_token_rejects_literals_without_echo(self) -> None:
        with pytest.raises(ValueError) as exc:
            parse_token("Jan Jansen")
        assert "Jan" not in str(exc.value)

    def test_is_token_exact_only(self) -> None:
        assert is_token("[BSN]")
        assert not is_token("BSN")
        assert not is_token("[UNKNOWN]")
        assert looks_like_token("[UNKNOWN]")


class TestPersonalDataRecord:
    """Tests for the personal data record."""

    def test_get_returns_none_for_empty(self) -> None:
        record = PersonalDataRecord(first_name="Jan")
        assert record.get("first_name") == "Jan"
        assert record.get("last_name") is None
        assert record.get("not_a_key") is None

    def test_values_are_coerced_to_text(self) -> None:
        record = PersonalDataRecord(house_number=12, postcode=" 1015CJ ", phone=None)
        assert record.house_number == "12"
        assert record.postcode == "1015CJ"
        assert record.phone == ""

    def test_repr_hides_values(self, record: PersonalDataRecord) -> None:
        text = repr(record) + str(record)
        for literal in record.literals():
            assert literal not in text

    def test_unknown_keys_ignored(self) -> None:
        record = PersonalDataRecord(first_name="Jan", shoe_size="44")
        assert record.filled_keys() == ["first_name"]

    def test_load_from_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "personal.yaml"
        path.write_text("first_name: Jan\nhouse_number: 12\n", encoding="utf-8")

        record = load_personal_data(path)

        assert record.get("first_name") == "Jan"
        assert record.get("house_number") == "12"

    def test_load_logs_no_values(self, tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
        path = tmp_path / "personal.yaml"
        path.write_text("first_name: Wilhelmina\n", encoding="utf-8")

        with caplog.at_level("DEBUG"):
            load_personal_data(path)

        assert "Wilhelmina" not in caplog.text


class TestMatchChoiceOption:
    """Tests for adapting literals to select options."""

    OPTIONS = [("", "Kies een nationaliteit"), ("NL", "Nederlandse"), ("DE", "Duitse"), ("TR", "Turkse")]

    def test_exact_value_match(self) -> None:
        assert match_choice_option("DE", self.OPTIONS) == "DE"

    def test_exact_text_match_case_insensitive(self) -> None:
        assert match_choice_option("turkse", self.OPTIONS) == "TR"

    def test_nationality_variant(self) -> None:
        assert match_choice_option("Dutch", self.OPTIONS) == "NL"

    def test_no_match(self) -> None:
        assert match_choice_option("Brazilian", self.OPTIONS) is None

    def test_empty_option_text_never_matches(self) -> None:
        assert match_choice_option("Brazilian", [("", ""), ("x", "Other")]) is None
