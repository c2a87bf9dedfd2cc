from __future__ import annotations

import pytest

from ipocheck.normalize import OFFERING_TAGS, CompanyNameNormalizer, normalize_company_name
from ipocheck.providers.nabil_invest import NabilInvestProvider
from ipocheck.providers.nepal_sbi import NepalSbiProvider
from ipocheck.providers.nimb_ace_capital import NimbAceCapitalProvider
from ipocheck.providers.nmb_capital import NmbCapitalProvider

SAMPLE_NAMES = [
    "Himalayan ReInsurance Limited - Public",
    "Himalayan Re-Insurance Ltd. (General Public)",
    "Nepal Re Insurance Company Limited",
    "Sanima Hydropower Ltd. - IPO for General Public",
    "Example Bank Limited FPO",
    "Example Hydro (For Project Affected Locals)",
    "Shivam Cements Limited (Foreign Employment)",
    "  Mixed   CASE   Pvt. Ltd.  ",
    "Ghorahi Cement Industry Limited - Foreign Employment.",
    "((nested) parentheses) Company Ltd",
    "-rzJİLtd",
    "İSTANBUL HOLDİNG LİMİTED",
    "",
]

TAGGED = CompanyNameNormalizer().extended(trailing_phrases=OFFERING_TAGS)


def test_worked_example() -> None:
    raw_name = "Himalayan ReInsurance Limited - Public"

    assert normalize_company_name(raw_name) == "himalayan reinsurance"


@pytest.mark.parametrize(
    ("raw_name", "expected"),
    [
        ("Himalayan Re-Insurance Ltd. (General Public)", "himalayan reinsurance"),
        ("Sanima Hydropower Ltd. - IPO for General Public", "sanima hydropower ipo"),
        ("Example Bank Limited FPO", "example bank fpo"),
        ("Example Hydro (For Project Affected Locals)", "example hydro"),
        ("Ghorahi Cement Industry Limited - Foreign Employment.", "ghorahi cement industry"),
        ("  Mixed   CASE   Pvt. Ltd.  ", "mixed case"),
        (None, ""),
    ],
)
def test_normalize(raw_name: str | None, expected: str) -> None:
    assert normalize_company_name(raw_name) == expected


@pytest.mark.parametrize("raw_name", SAMPLE_NAMES)
def test_normalize_is_idempotent(raw_name: str) -> None:
    once = normalize_company_name(raw_name)
    assert normalize_company_name(once) == once


@pytest.mark.parametrize("raw_name", SAMPLE_NAMES)
def test_tagged_normalize_is_idempotent(raw_name: str) -> None:
    once = TAGGED(raw_name)
    assert TAGGED(once) == once


def test_dotted_capital_i_does_not_split_words_late() -> None:
    once = normalize_company_name("-rzJİLtd")

    assert once == normalize_company_name(once)
    assert not once.endswith("ltd")


def test_same_offering_from_different_providers_matches() -> None:
    assert normalize_company_name("Himalayan Reinsurance Limited (Foreign Employment)") == (
        normalize_company_name("HIMALAYAN RE-INSURANCE LTD.")
    )


def test_extended_normalizer_knows_extra_phrases() -> None:
    normalizer = CompanyNameNormalizer().extended(
        trailing_phrases=("mutual fund holders",),
        replacements=((r"\bhydro\s+power\b", "hydropower"),),
    )

    assert normalizer("Upper Hydro Power Limited Mutual Fund Holders") == "upper hydropower"
    assert normalizer("Upper Hydro Power Limited") == normalizer(normalizer("Upper Hydro Power"))


def test_providers_strip_their_own_offering_suffixes() -> None:
    raw_name = "Sanima Hydropower Ltd. - IPO for General Public"

    assert NepalSbiProvider.normalizer(raw_name) == "sanima hydropower"
    assert NmbCapitalProvider.normalizer(raw_name) == "sanima hydropower"
    assert NimbAceCapitalProvider.normalizer("Example Bank Limited FPO") == "example bank"
    assert NabilInvestProvider.normalizer(raw_name) == "sanima hydropower ipo"


def test_provider_normalizer_matches_plain_caller_input() -> None:
    provider = NepalSbiProvider()

    assert provider.normalize_name("Example Hydro Ltd. - IPO for General Public") == (
        provider.normalize_name("Example Hydro")
    )
