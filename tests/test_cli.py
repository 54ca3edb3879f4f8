"""Tests for the interactive picker and the rotation prompt."""

from unittest.mock import MagicMock, patch

import cli

OPTIONS = ["IWDA", "MEUD", "IMAE"]
LABELS = {s: s for s in OPTIONS}


class TestPick:
    def test_enter_selects_highlighted(self):
        with patch("cli._getch", side_effect=["\x1b[B", "\r"]):
            assert cli.pick(OPTIONS, LABELS) == "MEUD"

    def test_quit_selects_last_option_in_menus(self):
        with patch("cli._getch", side_effect=["q"]):
            assert cli.pick(OPTIONS, LABELS) == "IMAE"

    def test_quit_cancels_when_cancellable(self):
        with patch("cli._getch", side_effect=["\x1b[B", "\x03"]):
            assert cli.pick(OPTIONS, LABELS, cancellable=True) is None


class TestRotateInto:
    def make_dashboard(self):
        dashboard = MagicMock()
        dashboard.ledger.portfolio.current_symbol = "VWCE"
        dashboard.registry.symbols.return_value = ["IWDA", "VWCE", "MEUD"]
        return dashboard

    def test_cancel_skips_confirmation_and_trade(self):
        dashboard = self.make_dashboard()
        with patch("cli.pick", return_value=None) as mock_pick, \
             patch("cli.Confirm.ask") as mock_confirm:
            cli._rotate_into(dashboard)

        assert mock_pick.call_args.kwargs["cancellable"] is True
        mock_confirm.assert_not_called()
        dashboard.execute_trade.assert_not_called()

    def test_confirmed_rotation_trades(self):
        dashboard = self.make_dashboard()
        with patch("cli.pick", return_value="MEUD"), \
             patch("cli.Confirm.ask", return_value=True):
            cli._rotate_into(dashboard)

        dashboard.execute_trade.assert_called_once_with("MEUD")

    def test_declined_rotation_does_not_trade(self):
        dashboard = self.make_dashboard()
        with patch("cli.pick", return_value="MEUD"), \
             patch("cli.Confirm.ask", return_value=False):
            cli._rotate_into(dashboard)

        dashboard.execute_trade.assert_not_called()
