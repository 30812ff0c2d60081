from __future__ import annotations

from rorlink.adapters.pure import (
    parse_identifier,
    serialize_identifier,
    translate_external_organization,
)
from rorlink.adapters.pure.schema import PureExternalOrganization
from rorlink.adapters.ror import ror_id_suffix, translate_affiliation_item
from rorlink.adapters.ror.schema import RorAffiliationItem, RorOrganizationDetail
from rorlink.adapters.ror.translator import with_locations
from rorlink.domain.model import ClassifiedId, OpaqueIdentifier, WorkflowStatus
from tests.support.fakes import make_candidate
from tests.support.payloads import (
    SCOPUS_TYPE_URI,
    pure_org,
    ror_detail,
    ror_hit,
    scopus_identifier,
)


def test_classified_identifier_keeps_unmodeled_keys() -> None:
    payload = scopus_identifier()
    payload["type"] = {
        "uri": SCOPUS_TYPE_URI,
        "term": {"en_GB": "Scopus affiliation ID", "da_DK": None},
        "link": {"ref": "classification", "href": "https://pure.example.org/ws/api/scopus"},
    }

    identifier = parse_identifier(payload)

    assert isinstance(identifier, ClassifiedId)
    assert identifier.id == "60010292"
    assert identifier.type_term == {"en_GB": "Scopus affiliation ID"}
    assert serialize_identifier(identifier) == payload


def test_unknown_identifier_shapes_pass_through_unchanged() -> None:
    payloads = [
        {"typeDiscriminator": "PrimaryId", "value": "legacy", "idSource": "synchronisedImport"},
        {"typeDiscriminator": "ClassifiedId", "id": "no-type"},
        {"something": ["else", 1]},
    ]

    for payload in payloads:
        identifier = parse_identifier(payload)
        assert isinstance(identifier, OpaqueIdentifier)
        assert serialize_identifier(identifier) == payload


def test_external_organization_translation() -> None:
    payload = PureExternalOrganization.model_validate(
        pure_org(
            "org-7",
            version="abc",
            name={"da_DK": "Aarhus Universitet", "en_GB": ""},
            step="approved",
            city="Aarhus",
        )
    )

    record = translate_external_organization(payload)

    assert record.id == "org-7"
    assert record.version == "abc"
    assert record.display_name() == "Aarhus Universitet"
    assert record.city == "Aarhus"
    assert record.country == "Denmark"
    assert record.workflow_status is WorkflowStatus.APPROVED
    assert record.workflow_step == "approved"


def test_external_organization_without_optional_parts() -> None:
    payload = PureExternalOrganization.model_validate({"uuid": "org-8", "version": "1"})

    record = translate_external_organization(payload)

    assert record.display_name() == ""
    assert record.identifiers == ()
    assert record.country is None
    assert record.workflow_status is WorkflowStatus.OTHER


def test_ror_id_suffix() -> None:
    assert ror_id_suffix("https://ror.org/01aj84f44") == "01aj84f44"
    assert ror_id_suffix("01aj84f44") == "01aj84f44"


def test_affiliation_item_translation() -> None:
    item = RorAffiliationItem.model_validate(
        ror_hit(
            "https://ror.org/01aj84f44",
            name="Aarhus University",
            score=0.87,
            chosen=True,
            matching_type="common terms",
            aliases=["AU"],
        )
    )

    candidate = translate_affiliation_item(item)

    assert candidate is not None
    assert candidate.score == 0.87
    assert candidate.recommended is True
    assert candidate.match_type.value == "COMMON TERMS"
    assert candidate.aliases == ("AU",)
    assert candidate.substring == "Aarhus University"


def test_boolean_score_is_not_a_number() -> None:
    item = RorAffiliationItem.model_validate({"score": True, "organization": {"id": "x"}})

    assert item.score == 0.0


def test_with_locations_fills_missing_country() -> None:
    detail = RorOrganizationDetail.model_validate(ror_detail("https://ror.org/01aj84f44"))

    enriched = with_locations(make_candidate(), detail.locations)

    assert enriched.country_name == "Denmark"
    assert enriched.country_code == "DK"
    assert enriched.primary_location is not None
    assert enriched.primary_location.geonames_id == 2624652


def test_with_locations_keeps_candidate_without_locations() -> None:
    candidate = make_candidate()

    assert with_locations(candidate, []) is candidate
