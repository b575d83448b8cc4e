"""Tests for ticket-key extraction and URL construction."""

from gitsummary.core.tickets import extract_ticket_key, ticket_url


class TestExtractTicketKey:
    def test_key_in_title(self):
        assert extract_ticket_key("PROJ-123: fix overflow") == "PROJ-123"

    def test_no_key(self):
        assert extract_ticket_key("general cleanup") is None

    def test_title_wins_over_body(self):
        assert extract_ticket_key("ABC-1 first", "see XYZ-9") == "ABC-1"

    def test_falls_back_to_body(self):
        assert extract_ticket_key("fix login", "Refs: WEB-42") == "WEB-42"

    def test_lowercase_key_is_uppercased(self):
        assert extract_ticket_key("proj-7 tidy up") == "PROJ-7"

    def test_first_match_wins(self):
        assert extract_ticket_key("AB-1 and CD-2") == "AB-1"

    def test_embedded_in_word_is_ignored(self):
        assert extract_ticket_key("xPROJ-1y refactor") is None

    def test_single_letter_prefix_is_not_a_key(self):
        assert extract_ticket_key("A-1 release") is None

    def test_alphanumeric_prefix(self):
        assert extract_ticket_key("[K8S-310] bump chart") == "K8S-310"


class TestTicketUrl:
    def test_builds_browse_url(self):
        assert ticket_url("PROJ-123", "https://jira.example.com") == (
            "https://jira.example.com/browse/PROJ-123"
        )

    def test_trailing_slash_on_base(self):
        assert ticket_url("PROJ-1", "https://jira.example.com/") == (
            "https://jira.example.com/browse/PROJ-1"
        )

    def test_no_base_configured(self):
        assert ticket_url("PROJ-1", None) is None

    def test_no_key(self):
        assert ticket_url(None, "https://jira.example.com") is None
