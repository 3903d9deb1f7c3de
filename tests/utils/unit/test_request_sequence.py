from utils.request_sequence import RequestSequencer


class TestRequestSequencer:

    def test_latest_ticket_is_current(self):
        sequencer = RequestSequencer()
        ticket = sequencer.issue("cart")
        assert sequencer.is_current("cart", ticket)

    def test_older_ticket_is_stale(self):
        sequencer = RequestSequencer()
        first = sequencer.issue("cart")
        second = sequencer.issue("cart")
        assert not sequencer.is_current("cart", first)
        assert sequencer.is_current("cart", second)

    def test_keys_are_independent(self):
        sequencer = RequestSequencer()
        cart_ticket = sequencer.issue("cart")
        sequencer.issue(("details", 1))
        assert sequencer.is_current("cart", cart_ticket)
