"""Tests for settings loaded from the environment."""

from paye_rti.config import EmployerConfig, Settings


def test_employer_contact_from_env(monkeypatch):
    monkeypatch.setenv("COMPANY_NAME", "Acme Payroll Ltd")
    monkeypatch.setenv("CONTACT_NAME", "Sam Patel")
    monkeypatch.setenv("CONTACT_PHONE", "0161 496 0000")
    monkeypatch.setenv("CONTACT_EMAIL", "rti@acme.example")
    monkeypatch.setenv("APPRENTICESHIP_LEVY", "false")

    employer = Settings.from_env().employer

    assert employer.company_name == "Acme Payroll Ltd"
    assert employer.contact_name == "Sam Patel"
    assert employer.contact_phone == "0161 496 0000"
    assert employer.contact_email == "rti@acme.example"
    assert employer.apprenticeship_levy is False


def test_employer_defaults(monkeypatch):
    for name in ("CONTACT_NAME", "CONTACT_PHONE", "CONTACT_EMAIL", "APPRENTICESHIP_LEVY"):
        monkeypatch.delenv(name, raising=False)

    employer = Settings.from_env().employer

    assert employer.contact_email == EmployerConfig().contact_email
    assert employer.apprenticeship_levy is True
    assert employer.company_address.postcode == "EC1A 1BB"
