"""Unit tests for the MailStatus lifecycle and archived display status"""

import pytest

from domain.mail import MailStatus, can_transition, display_status, is_terminal, validate_transition
from domain.mail.mail_status import MailTransitionError, get_allowed_transitions


class TestMailStatusStateMachine:
    """Test lifecycle transitions"""

    def test_received_only_moves_to_scanned(self):
        assert get_allowed_transitions(MailStatus.RECEIVED) == [MailStatus.SCANNED]
        assert can_transition(MailStatus.RECEIVED, MailStatus.FORWARDED) is False
        assert can_transition(MailStatus.RECEIVED, MailStatus.SHREDDED) is False

    def test_scanned_branches(self):
        """SCANNED can be processed, forwarded or shredded"""
        for target in (MailStatus.PROCESSED, MailStatus.FORWARDED, MailStatus.SHREDDED):
            assert can_transition(MailStatus.SCANNED, target) is True
        assert can_transition(MailStatus.SCANNED, MailStatus.RECEIVED) is False

    def test_processed_is_soft_terminal(self):
        assert is_terminal(MailStatus.PROCESSED) is False
        assert can_transition(MailStatus.PROCESSED, MailStatus.FORWARDED) is True
        assert can_transition(MailStatus.PROCESSED, MailStatus.SCANNED) is False

    @pytest.mark.parametrize("terminal", [MailStatus.FORWARDED, MailStatus.SHREDDED])
    def test_hard_terminals_allow_nothing(self, terminal):
        assert is_terminal(terminal) is True
        for target in MailStatus:
            assert can_transition(terminal, target) is False

    def test_self_transition_rejected(self):
        for status in MailStatus:
            assert can_transition(status, status) is False

    def test_validate_transition_raises_with_allowed_list(self):
        with pytest.raises(MailTransitionError) as exc:
            validate_transition(MailStatus.SHREDDED, MailStatus.SCANNED)
        assert "SHREDDED -> SCANNED" in str(exc.value)

    def test_validate_transition_accepts_valid(self):
        validate_transition(MailStatus.RECEIVED, MailStatus.SCANNED)


class TestDisplayStatus:
    """Archival is layered over the physical status"""

    def test_archived_overrides_status(self):
        for status in MailStatus:
            assert display_status(status, True) == "archived"

    def test_unarchived_shows_lowercase_status(self):
        assert display_status(MailStatus.SCANNED, False) == "scanned"
        assert display_status(MailStatus.SHREDDED, False) == "shredded"
