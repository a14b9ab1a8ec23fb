"""Tests for the operator CLI."""

import pytest

from paye_rti.cli import RtiCli


class TestRtiCli:
    def test_tax_period(self, capsys):
        assert RtiCli().run(["tax-period", "--date", "2025-01-15"]) == 0
        out = capsys.readouterr().out
        assert "Tax year:  2024/2025" in out
        assert "Tax month: 10" in out

    def test_levy(self, capsys):
        assert RtiCli().run(["levy", "--total-payroll", "4,000,000"]) == 0
        assert "£5,000.00" in capsys.readouterr().out

    def test_no_command_prints_help(self, capsys):
        assert RtiCli().run([]) == 1
        assert "usage:" in capsys.readouterr().out

    def test_bad_amount_exits(self):
        with pytest.raises(SystemExit):
            RtiCli().run(["levy", "--total-payroll", "lots"])
